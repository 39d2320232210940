"""
Append-only event log.

The event log is a pure side-effect sink: it never decides anything. Each
emitted record gets the next sequence number, is appended to the in-memory
history, is published to the state store (counter + last record), and is
forwarded to an optional event bus for notification delivery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Protocol

from smarthome_alarm.core.state_store import StateStore
from smarthome_alarm.domain.events import EventRecord, EventSeverity, EventType
from smarthome_alarm.domain.models import ControlMode, SensorDefinition

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    EventSeverity.INFO: logging.INFO,
    EventSeverity.WARNING: logging.WARNING,
    EventSeverity.ALARM: logging.CRITICAL,
}


class EventPublisher(Protocol):
    """Anything that accepts event records (e.g. the runtime EventBus)."""

    def publish_event(self, record: EventRecord) -> None:
        ...


@dataclass
class EventLog:
    """
    Sequence-numbering event sink.

    Parameters
    ----------
    store
        Published state store receiving ``event_counter`` and ``last_event``.
    clock
        Callable returning the current wall-clock timestamp.
    bus
        Optional publisher receiving every record.
    """

    store: StateStore
    clock: Callable[[], datetime]
    bus: Optional[EventPublisher] = None
    _records: List[EventRecord] = field(default_factory=list)
    _counter: int = 0

    def emit(
        self,
        type: EventType,
        severity: EventSeverity,
        message: str,
        mode: Optional[ControlMode] = None,
        sensor: Optional[SensorDefinition] = None,
        sensor_id: Optional[str] = None,
    ) -> EventRecord:
        """
        Create, store and publish one event record.

        Parameters
        ----------
        type
            Event kind.
        severity
            Event severity.
        message
            Human-readable message.
        mode
            Mode the event relates to; defaults to the current published mode.
        sensor
            Optional sensor the event relates to.
        sensor_id
            Sensor id when no definition is available.

        Returns
        -------
        EventRecord
            The emitted record.
        """
        self._counter += 1
        record = EventRecord(
            sequence=self._counter,
            type=type,
            mode=mode if mode is not None else self.store.mode,
            severity=severity,
            timestamp=self.clock(),
            message=message,
            sensor_id=sensor.id if sensor is not None else sensor_id,
            sensor_name=sensor.name if sensor is not None else None,
        )
        self._records.append(record)
        self.store.update(event_counter=record.sequence, last_event=record)
        logger.log(_LOG_LEVELS[severity], "[%s] %s", record.type.value, record.message)

        if self.bus is not None:
            self.bus.publish_event(record)
        return record

    @property
    def records(self) -> List[EventRecord]:
        """Copy of the event history in emission order."""
        return list(self._records)

    @property
    def counter(self) -> int:
        return self._counter

    def of_type(self, type: EventType) -> List[EventRecord]:
        """Return the records of one event type."""
        return [r for r in self._records if r.type == type]
