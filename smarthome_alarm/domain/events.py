"""
Event domain models.

An `EventRecord` represents *what happened* at a specific time, while the
published state (see ``core/state_store.py``) represents *what is currently
true*. Every mode transition and trouble transition produces a record, so a
caller can reconstruct history without polling internal state.

Records are typically used for:
- logging and audit trails
- webhook notifications
- post-incident analysis
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from smarthome_alarm.domain.models import ControlMode


class EventSeverity(str, Enum):
    """
    Severity of an event record.

    Members
    -------
    INFO : str
        Normal lifecycle information.
    WARNING : str
        Abnormal condition requiring attention (trouble, blocked arming, pre-alarm).
    ALARM : str
        Full alarm.
    """

    INFO = "info"
    WARNING = "warning"
    ALARM = "alarm"


class EventType(str, Enum):
    """Kinds of event records emitted by the core."""

    ARMING_BLOCKED = "arming_blocked"
    ARMING_STARTED = "arming_started"
    ARMED = "armed"
    DISARMED = "disarmed"
    MODE_SET = "mode_set"
    ENTRY_DELAY_STARTED = "entry_delay_started"
    ALARM_PRE_STARTED = "alarm_pre_started"
    ALARM_FULL_STARTED = "alarm_full_started"
    SILENT_EVENT = "silent_event"
    TROUBLE_ADDED = "trouble_added"
    TROUBLE_REMOVED = "trouble_removed"


@dataclass(frozen=True)
class EventRecord:
    """
    Immutable structured event record.

    Parameters
    ----------
    sequence
        Monotonically increasing number assigned by the event log (starts at 1).
    type
        Event kind.
    mode
        Control mode the event relates to.
    severity
        Severity level.
    timestamp
        When the event was emitted.
    message
        Human-readable description.
    sensor_id
        Optional sensor identifier.
    sensor_name
        Optional sensor display name.
    """

    sequence: int
    type: EventType
    mode: ControlMode
    severity: EventSeverity
    timestamp: datetime
    message: str
    sensor_id: Optional[str] = None
    sensor_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Return a JSON-friendly representation.

        Returns
        -------
        dict
            Record fields with enums as their string values and the timestamp
            in ISO-8601 form.
        """
        return {
            "sequence": self.sequence,
            "type": self.type.value,
            "mode": self.mode.value,
            "sensorId": self.sensor_id,
            "sensorName": self.sensor_name,
            "time": self.timestamp.isoformat(),
            "severity": self.severity.value,
            "message": self.message,
        }
