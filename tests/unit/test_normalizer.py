"""
Unit tests for smarthome_alarm.core.sensors.normalizer.

Validates:
- accepted raw forms (bool, 0/1, "true"/"false" with case and whitespace)
- inversion applied after acceptance
- everything else is unreadable (never an exception)
"""

from __future__ import annotations

import pytest

from smarthome_alarm.core.sensors.normalizer import UNREADABLE, Readable, normalize_sensor_value
from smarthome_alarm.domain.models import SensorDefinition

PLAIN = SensorDefinition(id="s1", name="S1")
INVERTED = SensorDefinition(id="s2", name="S2", invert=True)


@pytest.mark.parametrize("raw", [True, 1, "true", " TRUE ", 1.0])
def test_truthy_forms_normalize_to_true(raw) -> None:
    assert normalize_sensor_value(raw, PLAIN) == Readable(True)


@pytest.mark.parametrize("raw", [False, 0, "false", "False\n"])
def test_falsy_forms_normalize_to_false(raw) -> None:
    assert normalize_sensor_value(raw, PLAIN) == Readable(False)


def test_invert_is_applied_after_acceptance() -> None:
    assert normalize_sensor_value(True, INVERTED) == Readable(False)
    assert normalize_sensor_value(1, INVERTED) == Readable(False)
    assert normalize_sensor_value("false", INVERTED) == Readable(True)


@pytest.mark.parametrize("raw", [2, -1, 0.5, "yes", "", "1", None, [], {"v": True}])
def test_other_values_are_unreadable(raw) -> None:
    assert normalize_sensor_value(raw, PLAIN) is UNREADABLE
    # inversion never turns garbage into a value
    assert normalize_sensor_value(raw, INVERTED) is UNREADABLE
