"""
Unit tests for smarthome_alarm.services.controller.AlarmController.

These tests validate orchestration behavior:
- start() applies outputs and seeds last values from the source
- command routing and edge-triggered buttons
- handle_message() returns the records a message produced
- emitted records are published to the bus when one is provided

No threads or network I/O are involved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from smarthome_alarm.bootstrap import build_alarm_core
from smarthome_alarm.core.boundary import MemoryStateRegistry
from smarthome_alarm.core.config.yaml_config import AlarmConfig
from smarthome_alarm.core.timers import ManualScheduler
from smarthome_alarm.domain.events import EventRecord, EventType
from smarthome_alarm.domain.models import Command, ControlMode, OutputDefinition, SensorDefinition, SensorUpdate
from smarthome_alarm.services.controller import AlarmController

CFG = AlarmConfig(
    exit_delay_sec=0,
    entry_delay_sec=0,
    pre_alarm_sec=0,
    alarm_duration_sec=0,
    sensors=[
        SensorDefinition(id="s1", name="S1"),
        SensorDefinition(id="s2", name="S2"),
        SensorDefinition(id="s3", name="S3"),
    ],
    outputs=[OutputDefinition(id="siren", name="Siren")],
)


@dataclass
class FakeBus:
    """
    Fake event bus that records published event records.
    """

    published: List[EventRecord] = field(default_factory=list)

    def publish_event(self, record: EventRecord) -> None:
        """Record published events."""
        self.published.append(record)


def _build(bus: Optional[FakeBus] = None) -> Tuple[AlarmController, MemoryStateRegistry]:
    reg = MemoryStateRegistry()
    reg.set_sensor("s1", False, notify=False)
    reg.set_sensor("s2", False, notify=False)
    reg.set_sensor("s3", False, notify=False)
    return build_alarm_core(CFG, ManualScheduler(), reg, reg, bus=bus), reg


def test_start_seeds_values_and_marks_trouble() -> None:
    c, reg = _build()
    reg.set_sensor("s2", "junk", notify=False)
    reg.set_sensor("s3", None, notify=False)

    c.start()

    assert c.core.runtime["s1"].last_value is False
    assert c.core.runtime["s3"].last_value is None
    assert c.snapshot().trouble_list == ("s2",)
    assert reg.get("siren").value is False
    # a value present at start is not a transition, the next edge is
    assert c.handle_sensor_update("s1", True) is True


def test_start_publishes_counts() -> None:
    c, _ = _build()

    s = c.snapshot()
    assert s.input_count == 3
    assert s.output_count == 1
    assert s.configured is True


def test_edge_triggered_buttons() -> None:
    c, _ = _build()

    assert c.handle_command("arm_full", False) is False
    assert c.snapshot().mode == ControlMode.DISARMED

    assert c.handle_command("arm_full") is True
    assert c.snapshot().mode == ControlMode.ARMED_FULL

    assert c.handle_command("disarm", False) is False
    assert c.snapshot().mode == ControlMode.ARMED_FULL

    assert c.handle_command("disarm", True) is True
    assert c.snapshot().mode == ControlMode.DISARMED

    assert c.handle_command("arm_perimeter") is True
    assert c.snapshot().mode == ControlMode.ARMED_PERIMETER


def test_mode_and_silenced_commands() -> None:
    c, _ = _build()

    assert c.handle_command("mode", "armed_full") is True
    assert c.snapshot().mode == ControlMode.ARMED_FULL

    assert c.handle_command("silenced", True) is True
    assert c.snapshot().silenced is True

    assert c.handle_command("silenced", "on") is False


def test_unknown_command_is_ignored(caplog) -> None:
    c, _ = _build()

    assert c.handle_command("self_destruct") is False
    assert "Unknown command" in caplog.text


def test_handle_message_returns_new_records() -> None:
    c, _ = _build()

    records = c.handle_message(Command("arm_full"))
    assert [r.type for r in records] == [EventType.ARMING_STARTED, EventType.ARMED]

    c.handle_message(SensorUpdate("s1", False))
    records = c.handle_message(SensorUpdate("s1", True))
    assert [r.type for r in records] == [EventType.ALARM_FULL_STARTED]

    assert c.handle_message(SensorUpdate("s1", True)) == []


def test_records_are_published_to_bus() -> None:
    bus = FakeBus()
    c, _ = _build(bus)

    c.arm_full()
    c.disarm()

    assert [r.type for r in bus.published] == [
        EventType.ARMING_STARTED,
        EventType.ARMED,
        EventType.DISARMED,
    ]
    assert [r.sequence for r in bus.published] == [1, 2, 3]
