from __future__ import annotations

import logging
import threading
import time
from queue import Full, Queue
from typing import Any, Optional

from smarthome_alarm.core.boundary import SensorSource
from smarthome_alarm.core.state_store import StateStore
from smarthome_alarm.domain.models import Command, SensorUpdate
from smarthome_alarm.notification.notification_thread import NotificationWorkerThread
from smarthome_alarm.runtime.alarm_worker_thread import AlarmWorkerThread, WorkerMessage
from smarthome_alarm.runtime.event_bus import EventBus
from smarthome_alarm.runtime.notification_adapter_thread import NotificationAdapterThread
from smarthome_alarm.services.controller import AlarmController

logger = logging.getLogger(__name__)


class AppRuntime:
    """
    Thread supervisor for the alarm runtime.

    This class owns:
    - a shared stop event
    - the worker inbox (sensor updates, commands, expired timers)
    - thread lifecycles (start/stop/join)
    - event bus integration (EventRecord -> notifications)

    Thread Topology
    ---------------
    1) Sensor source callbacks (any thread)
       - push `SensorUpdate` messages into `inbox`
    2) Timer threads (`threading.Timer`)
       - push `TimerFiring` messages into `inbox`
    3) AlarmWorkerThread (business logic)
       - consumes `inbox`, the only thread that mutates core state
    4) NotificationAdapterThread (optional)
       - consumes event records from the EventBus
       - emits notification events into NotificationWorkerThread

    Notes
    -----
    - All threads are daemon threads; `stop()` + `join()` are still used for clean shutdown.
    - Backpressure policy:
      - sensor updates and commands are dropped if the inbox is full
      - timer firings always block until queued, so no timer is ever lost
      - EventBus drops records if overloaded
    """

    def __init__(
        self,
        controller: AlarmController,
        source: SensorSource,
        bus: EventBus,
        store: StateStore,
        inbox: "Queue[WorkerMessage]",
        notifier: Optional[NotificationWorkerThread] = None,
    ):
        """
        Parameters
        ----------
        controller
            Alarm controller executed on the worker thread.
        source
            Sensor source whose updates are forwarded to the worker.
        bus
            Event bus fed by the event log.
        store
            Published state store.
        inbox
            Worker queue shared with the threading scheduler.
        notifier
            Optional notification worker (webhook delivery).
        """
        self._controller = controller
        self._source = source
        self._bus = bus
        self._store = store
        self._notifier = notifier
        self._stop = threading.Event()
        self._subscribed = False
        self.inbox = inbox
        self.dropped = 0

        self._alarm_worker = AlarmWorkerThread(
            controller=controller,
            inbox=self.inbox,
            stop_event=self._stop,
        )

        self._notify_adapter: Optional[NotificationAdapterThread] = None
        if notifier is not None:
            self._notify_adapter = NotificationAdapterThread(
                bus=self._bus,
                store=self._store,
                notifier=notifier,
                stop_event=self._stop,
            )

    @property
    def store(self) -> StateStore:
        return self._store

    def submit_update(self, sensor_id: str, value: Any) -> bool:
        """Queue a raw sensor update; returns False if it was dropped."""
        return self._offer(SensorUpdate(sensor_id=sensor_id, value=value))

    def submit_command(self, name: str, value: Any = True) -> bool:
        """Queue a command; returns False if it was dropped."""
        return self._offer(Command(name=name, value=value))

    def _offer(self, msg: WorkerMessage) -> bool:
        if self._stop.is_set():
            return False
        try:
            self.inbox.put_nowait(msg)
            return True
        except Full:
            self.dropped += 1
            logger.warning("Worker queue full, dropping %r", msg)
            return False

    def start(self) -> None:
        """
        Start all runtime threads.

        Notes
        -----
        The initial state is applied on the calling thread before the worker
        starts, then the sensor source subscription is installed.
        """
        self._controller.start()
        self._alarm_worker.start()
        if self._notifier is not None:
            self._notifier.start()
        if self._notify_adapter is not None:
            self._notify_adapter.start()
        if not self._subscribed:
            self._source.subscribe(self.submit_update)
            self._subscribed = True

    def wait_idle(self, timeout: float = 2.0) -> bool:
        """
        Wait until the worker has handled everything queued so far.

        Returns
        -------
        bool
            True if the inbox drained within ``timeout``.
        """
        deadline = time.monotonic() + timeout
        while self.inbox.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def stop(self) -> None:
        """
        Stop all runtime threads and wait briefly for shutdown.

        Pending core timers are cancelled once the worker has exited, so no
        `threading.Timer` keeps feeding the undrained inbox afterwards.
        """
        self._alarm_worker.stop()
        if self._notify_adapter is not None:
            self._notify_adapter.stop()

        self._alarm_worker.join(timeout=2.0)
        if self._alarm_worker.is_alive():
            logger.warning("Alarm worker did not stop in time, core timers left running")
        else:
            self._controller.core.timers.cancel_all()
        if self._notify_adapter is not None:
            self._notify_adapter.join(timeout=2.0)
        if self._notifier is not None:
            self._notifier.stop()
