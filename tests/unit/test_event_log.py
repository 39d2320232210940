"""
Unit tests for smarthome_alarm.core.event_log.EventLog.

Validates:
- sequence numbers start at 1 and increase
- the store receives counter and last record
- mode defaults to the current published mode
- records are forwarded to the bus
- EventRecord.to_dict() shape
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from smarthome_alarm.core.event_log import EventLog
from smarthome_alarm.core.state_store import StateStore
from smarthome_alarm.domain.events import EventRecord, EventSeverity, EventType
from smarthome_alarm.domain.models import ControlMode, SensorDefinition

T0 = datetime(2026, 1, 1, 12, 0, 0)


@dataclass
class FakeBus:
    """Records published event records."""

    published: List[EventRecord] = field(default_factory=list)

    def publish_event(self, record: EventRecord) -> None:
        self.published.append(record)


def test_sequence_counter_and_store() -> None:
    store = StateStore()
    log = EventLog(store=store, clock=lambda: T0)

    first = log.emit(EventType.ARMING_STARTED, EventSeverity.INFO, "Arming started (armed_full)", mode=ControlMode.ARMING)
    second = log.emit(EventType.ARMED, EventSeverity.INFO, "System armed (armed_full)", mode=ControlMode.ARMED_FULL)

    assert (first.sequence, second.sequence) == (1, 2)
    assert log.counter == 2
    assert store.snapshot().event_counter == 2
    assert store.last_event == second
    assert [r.type for r in log.records] == [EventType.ARMING_STARTED, EventType.ARMED]
    assert log.of_type(EventType.ARMED) == [second]


def test_mode_defaults_to_published_mode() -> None:
    store = StateStore()
    store.update(mode=ControlMode.ARMED_PERIMETER)
    log = EventLog(store=store, clock=lambda: T0)

    rec = log.emit(EventType.SILENT_EVENT, EventSeverity.INFO, "Silent event (x)")

    assert rec.mode == ControlMode.ARMED_PERIMETER


def test_records_forwarded_to_bus() -> None:
    bus = FakeBus()
    log = EventLog(store=StateStore(), clock=lambda: T0, bus=bus)
    sensor = SensorDefinition(id="hall.door", name="Front door")

    rec = log.emit(EventType.TROUBLE_ADDED, EventSeverity.WARNING, "Trouble detected (Front door)", sensor=sensor)

    assert bus.published == [rec]
    assert rec.sensor_id == "hall.door"
    assert rec.sensor_name == "Front door"


def test_record_to_dict() -> None:
    log = EventLog(store=StateStore(), clock=lambda: T0)
    rec = log.emit(EventType.DISARMED, EventSeverity.INFO, "System disarmed", mode=ControlMode.DISARMED)

    assert rec.to_dict() == {
        "sequence": 1,
        "type": "disarmed",
        "mode": "disarmed",
        "sensorId": None,
        "sensorName": None,
        "time": "2026-01-01T12:00:00",
        "severity": "info",
        "message": "System disarmed",
    }
