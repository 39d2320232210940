from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from smarthome_alarm.domain.events import EventRecord
from smarthome_alarm.domain.models import ControlMode, OutputValue


@dataclass(frozen=True)
class PublishedState:
    """
    Read-only view of the core's outward state.

    This is what a host platform mirrors into its own state registry. It is
    immutable; every mutation on the store produces a new instance.

    Attributes
    ----------
    mode
        Current control mode.
    alarm_active
        True from pre-alarm/full alarm until disarm.
    outputs_active
        True from full alarm until the alarm duration elapses or disarm.
    silenced
        Siren outputs are muted.
    silent_event
        Silent-event indicator (held for a short time after each silent event).
    silent_event_count
        Number of silent events since start.
    exit_remaining, entry_remaining
        Countdown seconds of the exit and entry delays.
    last_trigger_sensor, last_trigger_time, last_reason
        Last-trigger record (sensor name, ISO timestamp, reason string).
    trouble_active, trouble_list
        Aggregate trouble flag and troubled sensor ids.
    open_list, bypassed_list
        Open and auto-bypassed sensor ids from the last arming attempt.
    event_counter, last_event
        Event log counter and most recent record.
    outputs_status
        Output identifier -> last applied value.
    configured, input_count, output_count
        Configuration summary (``configured`` is False if entries were skipped).
    """

    mode: ControlMode = ControlMode.DISARMED
    alarm_active: bool = False
    outputs_active: bool = False
    silenced: bool = False
    silent_event: bool = False
    silent_event_count: int = 0
    exit_remaining: int = 0
    entry_remaining: int = 0
    last_trigger_sensor: str = ""
    last_trigger_time: str = ""
    last_reason: str = ""
    trouble_active: bool = False
    trouble_list: Tuple[str, ...] = ()
    open_list: Tuple[str, ...] = ()
    bypassed_list: Tuple[str, ...] = ()
    event_counter: int = 0
    last_event: Optional[EventRecord] = None
    outputs_status: Tuple[Tuple[str, OutputValue], ...] = ()
    configured: bool = True
    input_count: int = 0
    output_count: int = 0


@dataclass
class StateStore:
    """
    Thread-safe holder of the published state.

    The worker thread is the only writer; UI, host adapters and notification
    threads read consistent snapshots.

    Concurrency Model
    -----------------
    All reads/writes are guarded by a single re-entrant lock
    (`threading.RLock`). List-valued fields are stored as tuples and
    :attr:`outputs_status` returns a fresh dict, so callers can never mutate
    the store through a returned value.
    """

    _state: PublishedState = field(default_factory=PublishedState)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def update(self, **changes: Any) -> PublishedState:
        """
        Apply field changes atomically.

        Parameters
        ----------
        **changes
            PublishedState field names and new values. Lists are converted to
            tuples and dicts (``outputs_status``) to item tuples.

        Returns
        -------
        PublishedState
            The new snapshot.
        """
        for key in ("trouble_list", "open_list", "bypassed_list"):
            if key in changes:
                changes[key] = tuple(changes[key])
        if "outputs_status" in changes and isinstance(changes["outputs_status"], dict):
            changes["outputs_status"] = tuple(changes["outputs_status"].items())
        with self._lock:
            self._state = replace(self._state, **changes)
            return self._state

    def snapshot(self) -> PublishedState:
        """Return the current published state."""
        with self._lock:
            return self._state

    # --- convenience read API ---
    @property
    def mode(self) -> ControlMode:
        with self._lock:
            return self._state.mode

    @property
    def outputs_status(self) -> Dict[str, OutputValue]:
        """
        Snapshot copy of the last applied output values.

        Returns
        -------
        dict[str, OutputValue]
            Mapping of output id -> last applied value.
        """
        with self._lock:
            return dict(self._state.outputs_status)

    @property
    def trouble_list(self) -> List[str]:
        with self._lock:
            return list(self._state.trouble_list)

    @property
    def last_event(self) -> Optional[EventRecord]:
        with self._lock:
            return self._state.last_event
