from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from smarthome_alarm.core.timers import TimerCallback


class ThreadTimerHandle:
    """
    Cancellable handle of a scheduled callback.

    Cancelling stops the underlying `threading.Timer`. If the timer already
    expired and its firing is waiting in the worker queue, the worker skips it
    because :attr:`cancelled` is set.
    """

    def __init__(self) -> None:
        self.cancelled = False
        self._timer: Optional[threading.Timer] = None

    def cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()


@dataclass(frozen=True)
class TimerFiring:
    """Queue message carrying an expired timer back to the worker thread."""

    handle: ThreadTimerHandle
    callback: TimerCallback

    def run(self) -> bool:
        """Run the callback unless the handle was cancelled; return True if it ran."""
        if self.handle.cancelled:
            return False
        self.callback()
        return True


class ThreadingScheduler:
    """
    Wall-clock scheduler for the threaded runtime.

    Timers are `threading.Timer` instances whose expiry does nothing but hand
    a :class:`TimerFiring` to ``submit`` (normally a put onto the alarm
    worker queue). Callbacks therefore always run on the worker thread,
    serialized with sensor updates and commands.

    Parameters
    ----------
    submit
        Callable receiving expired timers.
    """

    def __init__(self, submit: Callable[[TimerFiring], None]):
        self._submit = submit

    def monotonic(self) -> float:
        return time.monotonic()

    def now(self) -> datetime:
        return datetime.now()

    def call_later(self, delay_s: float, callback: TimerCallback) -> ThreadTimerHandle:
        handle = ThreadTimerHandle()
        timer = threading.Timer(max(0.0, delay_s), lambda: self._submit(TimerFiring(handle, callback)))
        timer.daemon = True
        handle._timer = timer
        timer.start()
        return handle
