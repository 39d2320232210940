from __future__ import annotations

import logging
import threading
from queue import Empty

from smarthome_alarm.core.state_store import StateStore
from smarthome_alarm.domain.events import EventRecord
from smarthome_alarm.notification.base import ALARM_EVENT, NotificationEvent
from smarthome_alarm.notification.notification_thread import NotificationWorkerThread
from smarthome_alarm.notification.payload import build_event_webhook_payload
from smarthome_alarm.runtime.event_bus import EventBus

logger = logging.getLogger(__name__)


class NotificationAdapterThread:
    """
    Pushes every logged alarm event to the notification worker.

    Each `EventRecord` taken from `EventBus.events_q` is combined with the
    current published status (mode, alarm flags, silenced) and queued on the
    `NotificationWorkerThread` as an ``ALARM_EVENT`` notification. The worker
    owns delivery and retries; this thread never blocks on the network.

    A record that fails to convert is logged and skipped so one bad record
    cannot stall the stream. The loop polls with a 0.5 s timeout and exits
    once `stop_event` is set.
    """

    def __init__(
        self,
        bus: EventBus,
        store: StateStore,
        notifier: NotificationWorkerThread,
        stop_event: threading.Event,
    ):
        self._bus = bus
        self._store = store
        self._notifier = notifier
        self._stop = stop_event
        self._thread = threading.Thread(target=self._run, name="notification-adapter", daemon=True)

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = 2.0) -> None:
        self._thread.join(timeout=timeout)

    def forward(self, ev: EventRecord) -> None:
        """Build the payload for one record and hand it to the notifier."""
        payload = build_event_webhook_payload(self._store, ev)
        self._notifier.emit(
            NotificationEvent(
                type=ALARM_EVENT,
                payload=payload,
                severity=ev.severity.value,
                source=ev.sensor_id,
                ts=ev.timestamp.isoformat(timespec="seconds"),
            )
        )

    def _run(self) -> None:
        """
        Worker loop: consume EventRecord and emit NotificationEvent.
        """
        while not self._stop.is_set():
            try:
                ev: EventRecord = self._bus.events_q.get(timeout=0.5)
            except Empty:
                continue

            try:
                self.forward(ev)
            except Exception:
                logger.exception("Forwarding event %s failed", ev.sequence)
