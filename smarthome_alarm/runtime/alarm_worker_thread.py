from __future__ import annotations

import logging
import threading
from queue import Empty, Queue
from typing import Union

from smarthome_alarm.domain.models import Command, SensorUpdate
from smarthome_alarm.runtime.thread_scheduler import TimerFiring
from smarthome_alarm.services.controller import AlarmController

logger = logging.getLogger(__name__)

WorkerMessage = Union[SensorUpdate, Command, TimerFiring]


class AlarmWorkerThread:
    """
    Worker thread owning all alarm core state.

    Responsibilities
    ----------------
    - Consume sensor updates, commands and expired timers from one queue.
    - Delegate updates and commands to `AlarmController.handle_message(...)`.
    - Run timer callbacks unless they were cancelled after expiring.

    Concurrency Model
    -----------------
    - This is the only thread that touches the core, so core components need
      no locking; the published state store is the thread-safe read side.
    - The thread polls the queue with a timeout to remain responsive to stop signals.
    - Exceptions in handlers are logged with traceback and do not kill the thread.

    Parameters
    ----------
    controller
        Alarm controller used to process updates and commands.
    inbox
        Queue of worker messages.
    stop_event
        Thread stop signal. When set, the worker exits its loop.
    """

    def __init__(
        self,
        controller: AlarmController,
        inbox: "Queue[WorkerMessage]",
        stop_event: threading.Event,
    ):
        self._controller = controller
        self._q = inbox
        self._stop = stop_event
        self._thread = threading.Thread(target=self._run, name="alarm-worker", daemon=True)

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        """Ask the loop to exit; queued messages not yet taken are left behind."""
        self._stop.set()

    def join(self, timeout: float | None = 2.0) -> None:
        self._thread.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                msg = self._q.get(timeout=0.5)
            except Empty:
                continue

            try:
                if isinstance(msg, TimerFiring):
                    msg.run()
                else:
                    self._controller.handle_message(msg)
            except Exception:
                logger.exception("Handling %r failed", msg)
            finally:
                self._q.task_done()
