from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

#: Notification type used for every event-log record pushed off-host.
ALARM_EVENT = "alarm_event"


@dataclass(frozen=True)
class NotificationEvent:
    """
    One outbound alarm notification.

    The alarm core never talks to a delivery channel directly: every logged
    `EventRecord` is wrapped in a `NotificationEvent` by the adapter thread and
    handed to the notification worker, which fans it out to the configured
    channels.

    Parameters
    ----------
    type
        Notification kind. Event-log forwarding uses ``ALARM_EVENT``.
    payload
        JSON-ready body (event record plus a status snapshot).
    severity
        Severity of the underlying record ("info", "warning", "alarm").
    source
        Sensor id of the record, when the record concerns one sensor.
    ts
        ISO timestamp of the record, second precision.
    """

    type: str
    payload: Dict[str, Any]
    severity: Optional[str] = None
    source: Optional[str] = None
    ts: Optional[str] = None

    @property
    def is_alarm(self) -> bool:
        return self.severity == "alarm"


class Notifier(Protocol):
    """
    Delivery channel for alarm notifications.

    Implementations raise on failure; retry and backoff live in
    `NotificationWorkerThread`, not in the channel.
    """

    def notify(self, event: NotificationEvent) -> None:
        ...
