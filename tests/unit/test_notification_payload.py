"""
Unit tests for smarthome_alarm.notification.payload.

These tests validate that build_event_webhook_payload:
- produces the expected payload structure (type/event/status)
- serializes the event record with camelCase keys
- reads the status from the store at build time

No I/O is performed.
"""

from __future__ import annotations

from datetime import datetime

from smarthome_alarm.core.state_store import StateStore
from smarthome_alarm.domain.events import EventRecord, EventSeverity, EventType
from smarthome_alarm.domain.models import ControlMode
from smarthome_alarm.notification.payload import build_event_webhook_payload


def _record() -> EventRecord:
    return EventRecord(
        sequence=7,
        type=EventType.ALARM_FULL_STARTED,
        mode=ControlMode.ALARM_FULL,
        sensor_id="hall.door",
        sensor_name="Front door",
        timestamp=datetime(2026, 1, 1, 10, 0, 5),
        severity=EventSeverity.ALARM,
        message="Full alarm started (Front door)",
    )


def test_payload_structure_and_event_fields() -> None:
    """
    Payload should include top-level keys: type, event, status.
    """
    payload = build_event_webhook_payload(StateStore(), _record())

    assert payload["type"] == "alarm_event"
    assert set(payload) == {"type", "event", "status"}

    event = payload["event"]
    assert event["sequence"] == 7
    assert event["type"] == "alarm_full_started"
    assert event["mode"] == "alarm_full"
    assert event["sensorId"] == "hall.door"
    assert event["sensorName"] == "Front door"
    assert event["time"] == "2026-01-01T10:00:05"
    assert event["severity"] == "alarm"
    assert event["message"] == "Full alarm started (Front door)"


def test_payload_status_reflects_store() -> None:
    store = StateStore()
    store.update(
        mode=ControlMode.ALARM_FULL,
        alarm_active=True,
        outputs_active=True,
        trouble_active=True,
        trouble_list=["garage.window"],
        bypassed_list=["kitchen.window"],
        last_reason="instant_trigger:alarm_full",
        event_counter=7,
    )

    status = build_event_webhook_payload(store, _record())["status"]

    assert status == {
        "mode": "alarm_full",
        "alarm_active": True,
        "outputs_active": True,
        "silenced": False,
        "trouble_active": True,
        "trouble_list": ["garage.window"],
        "open_list": [],
        "bypassed_list": ["kitchen.window"],
        "last_reason": "instant_trigger:alarm_full",
        "event_counter": 7,
    }
