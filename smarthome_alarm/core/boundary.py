"""
External value boundary (sensor inputs and output writes).

The core reads sensor values and writes output values through two small
protocols so that the host platform can provide its own registry. The
in-memory `MemoryStateRegistry` implements both and is used by the console
runner and the tests.

Output writes always carry an ``ack`` marker so the host can tell core-driven
(authoritative) writes apart from user-driven ones.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

SensorUpdateCallback = Callable[[str, Any], None]


class SensorSource(Protocol):
    """
    Read access to external boolean-like sensor values.

    Methods
    -------
    read(sensor_id)
        Return the current raw value, or None if unknown.
    subscribe(callback)
        Register a callback receiving ``(sensor_id, raw_value)`` updates.
    """

    def read(self, sensor_id: str) -> Any:
        ...

    def subscribe(self, callback: SensorUpdateCallback) -> None:
        ...


class OutputSink(Protocol):
    """Write access to external output values."""

    def write(self, output_id: str, value: Any, ack: bool = True) -> None:
        ...


@dataclass(frozen=True)
class StoredValue:
    """A value held by the memory registry together with its ack marker."""

    value: Any
    ack: bool


@dataclass
class MemoryStateRegistry:
    """
    Thread-safe in-memory state registry.

    Host code (or tests) sets sensor values with :meth:`set_sensor`, which
    stores the value and notifies subscribers. Output writes from the core are
    stored with their ack marker and can be inspected with :meth:`get`.

    Concurrency Model
    -----------------
    Reads and writes are guarded by a re-entrant lock. Subscriber callbacks
    are invoked outside the lock so they may read the registry.
    """

    _values: Dict[str, StoredValue] = field(default_factory=dict)
    _subscribers: List[SensorUpdateCallback] = field(default_factory=list)
    _writes: List[Tuple[str, Any, bool]] = field(default_factory=list)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    # --- SensorSource ---
    def read(self, sensor_id: str) -> Any:
        with self._lock:
            stored = self._values.get(sensor_id)
            return stored.value if stored is not None else None

    def subscribe(self, callback: SensorUpdateCallback) -> None:
        with self._lock:
            self._subscribers.append(callback)

    # --- OutputSink ---
    def write(self, output_id: str, value: Any, ack: bool = True) -> None:
        with self._lock:
            self._values[output_id] = StoredValue(value=value, ack=ack)
            self._writes.append((output_id, value, ack))

    # --- Host side ---
    def set_sensor(self, sensor_id: str, value: Any, notify: bool = True) -> None:
        """
        Set a sensor value as the host platform would.

        Parameters
        ----------
        sensor_id
            Sensor identifier.
        value
            Raw value (any boolean-like form, or garbage to simulate trouble).
        notify
            If False, only store the value (no update delivered), e.g. to
            preset states before the core starts.
        """
        with self._lock:
            self._values[sensor_id] = StoredValue(value=value, ack=False)
            subscribers = list(self._subscribers)
        if not notify:
            return
        for cb in subscribers:
            cb(sensor_id, value)

    def get(self, state_id: str) -> Optional[StoredValue]:
        """Return the stored value and ack marker for an id, if present."""
        with self._lock:
            return self._values.get(state_id)

    @property
    def writes(self) -> List[Tuple[str, Any, bool]]:
        """Copy of the output write log ``(output_id, value, ack)``."""
        with self._lock:
            return list(self._writes)
