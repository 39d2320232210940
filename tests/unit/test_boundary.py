"""
Unit tests for smarthome_alarm.core.boundary.MemoryStateRegistry.

Validates:
- sensor values are readable and delivered to subscribers
- notify=False presets a value silently
- output writes keep their ack marker and are logged
"""

from __future__ import annotations

from typing import Any, List, Tuple

from smarthome_alarm.core.boundary import MemoryStateRegistry, StoredValue


def test_set_sensor_notifies_subscribers() -> None:
    reg = MemoryStateRegistry()
    seen: List[Tuple[str, Any]] = []
    reg.subscribe(lambda sid, v: seen.append((sid, v)))

    reg.set_sensor("door", True)
    reg.set_sensor("door", "false", notify=False)

    assert seen == [("door", True)]
    assert reg.read("door") == "false"
    assert reg.read("unknown") is None


def test_subscriber_may_read_registry() -> None:
    reg = MemoryStateRegistry()
    seen: List[Any] = []
    reg.subscribe(lambda sid, v: seen.append(reg.read(sid)))

    reg.set_sensor("window", 1)

    assert seen == [1]


def test_writes_keep_ack_marker() -> None:
    reg = MemoryStateRegistry()

    reg.write("siren", True)
    reg.write("light", 0, ack=False)

    assert reg.get("siren") == StoredValue(value=True, ack=True)
    assert reg.get("light") == StoredValue(value=0, ack=False)
    assert reg.writes == [("siren", True, True), ("light", 0, False)]
