"""
Sensor value normalization.

Turns a loosely-typed raw value from the sensor boundary into a tagged result:
either ``Readable(value)`` with a canonical boolean, or ``UNREADABLE``.
"Unreadable" is a first-class result, not a fault: the caller surfaces it as
trouble membership.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from smarthome_alarm.domain.models import SensorDefinition


@dataclass(frozen=True)
class Readable:
    """A raw value that normalized to a canonical boolean."""

    value: bool


@dataclass(frozen=True)
class Unreadable:
    """A raw value that could not be normalized."""


UNREADABLE = Unreadable()

NormalizedValue = Union[Readable, Unreadable]


def _accept(raw: object) -> Union[bool, None]:
    # bool is checked before int: bool is a subclass of int
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        if raw == 0:
            return False
        if raw == 1:
            return True
        return None
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def normalize_sensor_value(raw: object, sensor: SensorDefinition) -> NormalizedValue:
    """
    Normalize a raw sensor value.

    Accepted raw forms are booleans, the numbers 0 and 1, and the strings
    ``"true"``/``"false"`` (case-insensitive, surrounding whitespace ignored).
    Everything else, including None, is unreadable. The sensor's invert flag
    is applied after acceptance.

    This function is pure and total: it never raises.

    Parameters
    ----------
    raw
        Value reported by the external sensor source.
    sensor
        Sensor definition providing the invert flag.

    Returns
    -------
    Readable or Unreadable
        Tagged normalization result.
    """
    accepted = _accept(raw)
    if accepted is None:
        return UNREADABLE
    if sensor.invert:
        accepted = not accepted
    return Readable(accepted)
