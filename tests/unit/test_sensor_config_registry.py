"""
Unit tests for smarthome_alarm.core.config.sensor_config_registry.SensorConfigRegistry.

These tests validate registry behavior:
- loading definitions populates the internal mapping
- a duplicate id overwrites the previous definition and logs a warning
- get() returns a definition when present and None when missing
- name_of() falls back to the id
- all() keeps first-appearance order

No I/O is performed.
"""

from __future__ import annotations

import logging

from smarthome_alarm.core.config.sensor_config_registry import SensorConfigRegistry
from smarthome_alarm.domain.models import SensorDefinition, SensorPolicy


def test_load_and_get_returns_definition() -> None:
    """
    load() should store definitions indexed by id and get() should retrieve them.
    """
    reg = SensorConfigRegistry()
    door = SensorDefinition(id="hall.door", name="Front door", policy=SensorPolicy.ENTRY_DELAY)

    reg.load([door])

    got = reg.get("hall.door")
    assert got is not None
    assert got.name == "Front door"
    assert got.policy == SensorPolicy.ENTRY_DELAY
    assert "hall.door" in reg
    assert len(reg) == 1


def test_get_returns_none_when_missing() -> None:
    """
    get() should return None when the sensor is not registered.
    """
    reg = SensorConfigRegistry()
    assert reg.get("unknown") is None
    assert "unknown" not in reg


def test_duplicate_id_last_wins_with_warning(caplog) -> None:
    """
    A second definition with the same id replaces the first one.
    """
    reg = SensorConfigRegistry()
    first = SensorDefinition(id="s1", name="Old")
    second = SensorDefinition(id="s1", name="New", bypassable=True)

    with caplog.at_level(logging.WARNING):
        reg.load([first, second])

    got = reg.get("s1")
    assert got is not None
    assert got.name == "New"
    assert got.bypassable is True
    assert len(reg) == 1
    assert "Duplicate sensor id s1" in caplog.text


def test_name_of_falls_back_to_id() -> None:
    reg = SensorConfigRegistry()
    reg.load([SensorDefinition(id="s1", name="")])

    assert reg.name_of("s1") == "s1"
    assert reg.name_of("missing") == "missing"


def test_all_returns_definitions_in_order() -> None:
    """
    all() should return a list of every registered definition.
    """
    reg = SensorConfigRegistry()
    reg.load([SensorDefinition(id="b", name="B"), SensorDefinition(id="a", name="A")])

    out = reg.all()
    assert isinstance(out, list)
    assert [c.id for c in out] == ["b", "a"]
