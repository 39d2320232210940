"""
Timer scheduling contracts.

The alarm core never sleeps. Delays (exit, entry, pre-alarm, alarm duration,
silent-event hold, chirp toggles and 1 Hz countdowns) are expressed as
callbacks registered with a `Scheduler`. Each callback resumes as an
independent handler on the same serialized execution thread.

This module provides:
- `Scheduler` / `TimerHandle` protocols
- `TimerTable`, which enforces "at most one active timer per category"
- `ManualScheduler`, a deterministic virtual-clock scheduler used by tests
  and simulations (the threaded runtime uses
  :class:`~smarthome_alarm.runtime.thread_scheduler.ThreadingScheduler`)
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]


class TimerCategory(str, Enum):
    """Fixed timer categories. Chirp timers use ``chirp:<output id>`` keys."""

    EXIT = "exit"
    EXIT_COUNTDOWN = "exit_countdown"
    ENTRY = "entry"
    ENTRY_COUNTDOWN = "entry_countdown"
    PRE_ALARM = "pre_alarm"
    ALARM_DURATION = "alarm_duration"
    SILENT_EVENT = "silent_event"


CHIRP_PREFIX = "chirp:"


def chirp_category(output_id: str) -> str:
    """Timer category key for an output's chirp pattern."""
    return f"{CHIRP_PREFIX}{output_id}"


class TimerHandle(Protocol):
    """Handle returned by a scheduler; cancelling must be idempotent."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """
    Protocol for time sources and delayed callbacks.

    Methods
    -------
    monotonic()
        Monotonic clock in seconds (used for debouncing).
    now()
        Wall-clock timestamp (used for event records).
    call_later(delay_s, callback)
        Run ``callback`` once after ``delay_s`` seconds.
    """

    def monotonic(self) -> float:
        ...

    def now(self) -> datetime:
        ...

    def call_later(self, delay_s: float, callback: TimerCallback) -> TimerHandle:
        ...


class TimerTable:
    """
    Timer handles keyed by category.

    `schedule` always cancels the existing timer of the same category before
    registering the new one, so two timers of one category can never be alive
    at the same time. A fired timer removes itself from the table before its
    callback runs.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._handles: Dict[str, TimerHandle] = {}

    @staticmethod
    def _key(category: "TimerCategory | str") -> str:
        return category.value if isinstance(category, TimerCategory) else str(category)

    def schedule(self, category: "TimerCategory | str", delay_s: float, callback: TimerCallback) -> None:
        """
        Register a one-shot timer for a category, replacing any existing one.

        Parameters
        ----------
        category
            Timer category.
        delay_s
            Delay in seconds (must be positive; zero-length delays are handled
            synchronously by callers).
        callback
            Handler to run on expiry.
        """
        key = self._key(category)
        self.cancel(key)

        def _fire() -> None:
            if self._handles.get(key) is handle:
                del self._handles[key]
            callback()

        handle = self._scheduler.call_later(delay_s, _fire)
        self._handles[key] = handle
        logger.debug("Timer %s scheduled in %ss", key, delay_s)

    def cancel(self, category: "TimerCategory | str") -> bool:
        """
        Cancel the timer of a category.

        Returns
        -------
        bool
            True if a timer was active and got cancelled.
        """
        key = self._key(category)
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        logger.debug("Timer %s cancelled", key)
        return True

    def cancel_prefix(self, prefix: str) -> None:
        """Cancel every timer whose category starts with ``prefix``."""
        for key in [k for k in self._handles if k.startswith(prefix)]:
            self.cancel(key)

    def cancel_all(self, keep: Iterable["TimerCategory | str"] = ()) -> None:
        """Cancel every active timer except the categories in ``keep``."""
        kept = {self._key(c) for c in keep}
        for key in [k for k in self._handles if k not in kept]:
            self.cancel(key)

    def active(self, category: "TimerCategory | str") -> bool:
        """Return True if a timer of the category is pending."""
        return self._key(category) in self._handles

    def active_categories(self) -> List[str]:
        """Return the keys of all pending timers."""
        return sorted(self._handles)


@dataclass
class _ManualHandle:
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """
    Deterministic scheduler driven by an explicit virtual clock.

    Callbacks are fired by :meth:`advance` in order of due time, ties broken
    by scheduling order. Callbacks scheduled while advancing are honoured if
    they fall due within the advanced window.

    Parameters
    ----------
    start
        Wall-clock timestamp corresponding to virtual time 0.
    """

    start: datetime = field(default_factory=lambda: datetime(2026, 1, 1, 0, 0, 0))
    _time: float = 0.0
    _queue: List[Tuple[float, int, _ManualHandle, TimerCallback]] = field(default_factory=list)
    _seq: "itertools.count[int]" = field(default_factory=itertools.count)

    def monotonic(self) -> float:
        return self._time

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self._time)

    def call_later(self, delay_s: float, callback: TimerCallback) -> _ManualHandle:
        handle = _ManualHandle()
        heapq.heappush(self._queue, (self._time + max(0.0, delay_s), next(self._seq), handle, callback))
        return handle

    def pending(self) -> int:
        """Number of scheduled, not-yet-cancelled callbacks."""
        return sum(1 for _, _, h, _ in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> None:
        """
        Move the virtual clock forward and fire every callback that falls due.

        Parameters
        ----------
        seconds
            Amount of virtual time to advance (non-negative).
        """
        target = self._time + max(0.0, seconds)
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self._time = max(self._time, due)
            if handle.cancelled:
                continue
            callback()
        self._time = target

    def next_due(self) -> Optional[float]:
        """Virtual time of the next live callback, or None."""
        live = [due for due, _, h, _ in self._queue if not h.cancelled]
        return min(live) if live else None
