"""
Domain models and enums.

This module defines the core domain-level types used across the alarm core:
- Control modes, sensor policies, mode-mask scopes, sensor and output types
- Sensor and output definitions (immutable configuration records)
- Per-sensor runtime state (mutable, owned by the sensor monitor)

Configuration records are frozen dataclasses so they can be shared safely
between the worker thread and readers of the published state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Union


class ControlMode(str, Enum):
    """
    System-wide control mode. Exactly one value is active at any instant.

    Members
    -------
    DISARMED : str
        Nothing is monitored.
    ARMING : str
        Exit delay is running towards an armed mode.
    ARMED_FULL : str
        All sensors whose mode mask includes ``full`` are monitored.
    ARMED_PERIMETER : str
        Only sensors whose mode mask includes ``perimeter`` are monitored.
    ENTRY_DELAY : str
        A delayed sensor fired; waiting for a disarm before escalating.
    ALARM_PRE : str
        Intermediate warning phase before the full alarm.
    ALARM_FULL : str
        Full alarm; stays until an explicit disarm.
    """

    DISARMED = "disarmed"
    ARMING = "arming"
    ARMED_FULL = "armed_full"
    ARMED_PERIMETER = "armed_perimeter"
    ENTRY_DELAY = "entry_delay"
    ALARM_PRE = "alarm_pre"
    ALARM_FULL = "alarm_full"

    @classmethod
    def parse(cls, value: object) -> Optional["ControlMode"]:
        """Return the matching mode for a raw command value, or None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


ARMED_MODES: FrozenSet[ControlMode] = frozenset({ControlMode.ARMED_FULL, ControlMode.ARMED_PERIMETER})
ESCALATING_MODES: FrozenSet[ControlMode] = frozenset({ControlMode.ALARM_PRE, ControlMode.ALARM_FULL})
CHIRP_MODES: FrozenSet[ControlMode] = frozenset({ControlMode.ARMING, ControlMode.ENTRY_DELAY})


class SensorPolicy(str, Enum):
    """
    How a firing sensor is handled once armed.

    Members
    -------
    INSTANT : str
        Escalate to alarm immediately.
    ENTRY_DELAY : str
        Start the entry delay first.
    SILENT : str
        Record a silent event; never escalates.
    """

    INSTANT = "instant"
    ENTRY_DELAY = "entryDelay"
    SILENT = "silent"


class ArmedScope(str, Enum):
    """Entries of a sensor's mode mask."""

    PERIMETER = "perimeter"
    FULL = "full"


ALL_SCOPES: FrozenSet[ArmedScope] = frozenset({ArmedScope.PERIMETER, ArmedScope.FULL})


class SensorType(str, Enum):
    """Informational sensor category."""

    WINDOW = "window"
    MOTION = "motion"
    DOOR = "door"
    OTHER = "other"


class OutputType(str, Enum):
    """
    Informational output category.

    Only ``SIREN`` changes behaviour: siren outputs honour the silence flag.
    """

    SIREN = "siren"
    LIGHT = "light"
    NOTIFICATION = "notification"
    CUSTOM = "custom"


OutputValue = Union[bool, int, float, str, None]


@dataclass(frozen=True)
class SensorDefinition:
    """
    Canonical sensor configuration record.

    Every supported configuration shape is decoded into this record at load
    time (see :mod:`smarthome_alarm.core.config.sensor_decoders`).

    Parameters
    ----------
    id
        External value-source identifier, opaque to the core.
    name
        Display name used in events and the last-trigger record.
    policy
        Trigger handling policy.
    mode_mask
        Armed scopes in which the sensor is monitored.
    invert
        Flip the normalized value after acceptance.
    bypassable
        Whether auto-bypass-on-arm may exclude this sensor.
    debounce_ms
        Per-sensor debounce override; None falls back to the global default.
    sensor_type
        Informational category.
    trigger_value
        Normalized value that counts as "open"/firing. Always True because
        inversion is already applied by the normalizer.
    """

    id: str
    name: str
    policy: SensorPolicy = SensorPolicy.INSTANT
    mode_mask: FrozenSet[ArmedScope] = ALL_SCOPES
    invert: bool = False
    bypassable: bool = False
    debounce_ms: Optional[int] = None
    sensor_type: SensorType = SensorType.OTHER
    trigger_value: bool = True

    def is_relevant_for(self, mode: ControlMode) -> bool:
        """
        Return True if the sensor is monitored in the given armed mode.

        Only ``armed_full`` and ``armed_perimeter`` have a scope; every other
        mode yields False.
        """
        if mode == ControlMode.ARMED_PERIMETER:
            return ArmedScope.PERIMETER in self.mode_mask
        if mode == ControlMode.ARMED_FULL:
            return ArmedScope.FULL in self.mode_mask
        return False


@dataclass(frozen=True)
class OutputDefinition:
    """
    Output channel configuration.

    Parameters
    ----------
    id
        External output identifier written through the output sink.
    name
        Display name.
    output_type
        Informational category (siren outputs honour silence).
    active_value
        Value written while the output is active.
    inactive_value
        Value written while the output is inactive.
    chirp
        Whether the output takes part in chirp patterns.
    """

    id: str
    name: str
    output_type: OutputType = OutputType.SIREN
    active_value: OutputValue = True
    inactive_value: OutputValue = False
    chirp: bool = False


@dataclass
class SensorRuntimeState:
    """
    Mutable per-sensor runtime state.

    Created at configuration load and discarded on reload. Owned exclusively
    by the sensor monitor.

    Attributes
    ----------
    last_value
        Last recorded normalized value, or None if none was recorded (or it
        was forgotten because the sensor went into trouble).
    last_event_at
        Monotonic time (seconds) of the last accepted readable update.
    """

    last_value: Optional[bool] = None
    last_event_at: Optional[float] = field(default=None)


@dataclass(frozen=True)
class SensorUpdate:
    """
    Raw sensor update as delivered by the sensor source.

    Parameters
    ----------
    sensor_id
        Sensor identifier.
    value
        Raw, not yet normalized value.
    """

    sensor_id: str
    value: object


@dataclass(frozen=True)
class Command:
    """
    External command.

    Parameters
    ----------
    name
        One of ``arm_full``, ``arm_perimeter``, ``disarm``, ``mode``, ``silenced``.
    value
        Command value (``True`` for the edge-triggered buttons, a mode string
        for ``mode``, a boolean for ``silenced``).
    """

    name: str
    value: object = True
