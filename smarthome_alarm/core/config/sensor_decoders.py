"""
Decoders for sensor and output configuration entries.

Sensor entries have been written in three shapes over time:

- **role-based**: ``{stateId, name, role, invert, triggerValue, policy, bypass, debounceMs}``
  where ``role`` is one of ``perimeter | entry | interior | 24h``
- **guideline-based**: ``{id, name, type, guideline, invert, bypassable, debounceMs}``
  where ``guideline`` is one of ``perimeter | entry | all``
- **policy+modeMask**: ``{id, name, type, policy, modeMask, invert, bypassable, debounceMs}``

All three decode to the canonical :class:`~smarthome_alarm.domain.models.SensorDefinition`.
Keys are accepted in snake_case as well as the camelCase spelling shown above.
Unknown enum values never fail the load: they fall back to a default with a
warning.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, TypeVar

from smarthome_alarm.domain.models import (
    ALL_SCOPES,
    ArmedScope,
    OutputDefinition,
    OutputType,
    OutputValue,
    SensorDefinition,
    SensorPolicy,
    SensorType,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ROLE_MASKS: Dict[str, FrozenSet[ArmedScope]] = {
    "perimeter": ALL_SCOPES,
    "entry": ALL_SCOPES,
    "interior": frozenset({ArmedScope.FULL}),
    "24h": ALL_SCOPES,
}

_LEGACY_TYPES: Dict[str, SensorType] = {
    "contact": SensorType.WINDOW,
    "vibration": SensorType.OTHER,
    "custom": SensorType.OTHER,
}


def pick(entry: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the value of the first key present in ``entry``."""
    for key in keys:
        if key in entry:
            return entry[key]
    return default


def as_bool(value: Any, default: bool = False, field_name: str = "value") -> bool:
    """
    Coerce a YAML scalar to a bool.

    Booleans pass through, ``"true"``/``"false"`` strings and the numbers 0/1
    are accepted. Anything else yields ``default`` with a warning.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    logger.warning("Invalid boolean for %s: %r (using %s)", field_name, value, default)
    return default


def non_negative_int(value: Any, default: Optional[int], field_name: str) -> Optional[int]:
    """
    Coerce a YAML scalar to a non-negative int.

    Negative values are clamped to 0 and non-numeric values fall back to
    ``default``; both cases log a warning.
    """
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid number for %s: %r (using %s)", field_name, value, default)
        return default
    if number < 0:
        logger.warning("Negative %s (%s) clamped to 0", field_name, number)
        return 0
    return number


def normalize_sensor_type(value: Any) -> SensorType:
    """Map a configured type to one of ``window | motion | door | other``."""
    if isinstance(value, str):
        try:
            return SensorType(value)
        except ValueError:
            return _LEGACY_TYPES.get(value, SensorType.OTHER)
    return SensorType.OTHER


def normalize_policy(value: Any) -> SensorPolicy:
    """Return the policy for a configured value; unknown values mean ``instant``."""
    if isinstance(value, SensorPolicy):
        return value
    if isinstance(value, str):
        try:
            return SensorPolicy(value)
        except ValueError:
            pass
    if value is not None:
        logger.warning("Unknown sensor policy %r, using instant", value)
    return SensorPolicy.INSTANT


def normalize_mode_mask(value: Any) -> FrozenSet[ArmedScope]:
    """
    Filter a configured mode mask to known scopes.

    Non-list values and masks without any known scope yield both scopes.
    """
    if not isinstance(value, (list, tuple, set, frozenset)):
        return ALL_SCOPES
    scopes = set()
    for item in value:
        try:
            scopes.add(ArmedScope(item))
        except ValueError:
            logger.warning("Unknown mode mask entry %r ignored", item)
    return frozenset(scopes) if scopes else ALL_SCOPES


def resolve_guideline(value: Any) -> Tuple[SensorPolicy, FrozenSet[ArmedScope]]:
    """
    Translate a guideline into policy and mode mask.

    ``entry`` is delayed in both scopes, ``perimeter`` is instant in both
    scopes, and ``all`` (the fallback for unknown values) is instant in full
    mode only.
    """
    if value == "entry":
        return SensorPolicy.ENTRY_DELAY, ALL_SCOPES
    if value == "perimeter":
        return SensorPolicy.INSTANT, ALL_SCOPES
    if value != "all":
        logger.warning("Unknown sensor guideline %r, using 'all'", value)
    return SensorPolicy.INSTANT, frozenset({ArmedScope.FULL})


def _decode_role(entry: Mapping[str, Any]) -> Tuple[SensorPolicy, FrozenSet[ArmedScope], bool, bool]:
    role = entry.get("role")
    mask = _ROLE_MASKS.get(role) if isinstance(role, str) else None
    if mask is None:
        logger.warning("Unknown sensor role %r, monitoring in both scopes", role)
        mask = ALL_SCOPES

    policy_raw = entry.get("policy")
    if policy_raw is None:
        policy = SensorPolicy.ENTRY_DELAY if role == "entry" else SensorPolicy.INSTANT
    else:
        policy = normalize_policy(policy_raw)

    invert = as_bool(entry.get("invert"), False, "invert")
    # a legacy triggerValue of False means "fires on false"
    if pick(entry, "triggerValue", "trigger_value") is False:
        invert = not invert
    bypassable = as_bool(pick(entry, "bypass", "bypassable"), False, "bypass")
    return policy, mask, invert, bypassable


def sensor_shape(entry: Mapping[str, Any]) -> str:
    """Return ``role``, ``guideline`` or ``policy`` for a sensor entry."""
    if "role" in entry:
        return "role"
    if "guideline" in entry:
        return "guideline"
    return "policy"


def decode_sensor(entry: Mapping[str, Any], index: int) -> Optional[SensorDefinition]:
    """
    Decode one sensor entry into a canonical definition.

    Parameters
    ----------
    entry
        Raw mapping from the configuration file.
    index
        Zero-based position in the sensor list (for log messages).

    Returns
    -------
    SensorDefinition or None
        None if the entry has no usable id (a warning is logged).
    """
    if not isinstance(entry, Mapping):
        logger.warning("Sensor entry %d is not a mapping.", index + 1)
        return None

    sensor_id = entry.get("id") or entry.get("stateId") or entry.get("state_id")
    if not sensor_id:
        logger.warning("Sensor entry %d is missing an id.", index + 1)
        return None
    sensor_id = str(sensor_id)

    shape = sensor_shape(entry)
    if shape == "role":
        policy, mask, invert, bypassable = _decode_role(entry)
    else:
        if shape == "guideline":
            policy, mask = resolve_guideline(entry.get("guideline"))
        else:
            policy = normalize_policy(entry.get("policy"))
            mask = normalize_mode_mask(pick(entry, "modeMask", "mode_mask"))
        invert = as_bool(entry.get("invert"), False, "invert")
        bypassable = as_bool(pick(entry, "bypassable", "bypass"), False, "bypassable")

    return SensorDefinition(
        id=sensor_id,
        name=str(entry.get("name") or sensor_id),
        policy=policy,
        mode_mask=mask,
        invert=invert,
        bypassable=bypassable,
        debounce_ms=non_negative_int(pick(entry, "debounceMs", "debounce_ms"), None, f"debounce of {sensor_id}"),
        sensor_type=normalize_sensor_type(entry.get("type")),
    )


def normalize_output_value(value: Any, fallback: OutputValue) -> OutputValue:
    """
    Normalize a configured output value.

    Rules
    -----
    - explicit None stays None
    - empty/whitespace strings yield ``fallback``
    - ``"true"``/``"false"`` (any case) become booleans
    - numeric strings become numbers (int when integral)
    - other strings are trimmed
    - bools and numbers pass through; anything else yields ``fallback``
    """
    if value is None:
        return None
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return fallback
        lowered = trimmed.lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        try:
            number = float(trimmed)
        except ValueError:
            return trimmed
        return int(number) if number.is_integer() else number
    return fallback


def decode_output(entry: Mapping[str, Any], index: int) -> Optional[OutputDefinition]:
    """
    Decode one output entry.

    Missing ``activeValue``/``inactiveValue`` default to True/False. Returns
    None (with a warning) when the entry has no id.
    """
    if not isinstance(entry, Mapping):
        logger.warning("Output entry %d is not a mapping.", index + 1)
        return None

    output_id = entry.get("id") or entry.get("stateId") or entry.get("state_id")
    if not output_id:
        logger.warning("Output entry %d is missing an id.", index + 1)
        return None
    output_id = str(output_id)

    type_raw = entry.get("type", OutputType.SIREN.value)
    try:
        output_type = OutputType(type_raw)
    except ValueError:
        logger.warning("Unknown output type %r for %s, using custom", type_raw, output_id)
        output_type = OutputType.CUSTOM

    return OutputDefinition(
        id=output_id,
        name=str(entry.get("name") or output_id),
        output_type=output_type,
        active_value=normalize_output_value(pick(entry, "activeValue", "active_value", default=""), True),
        inactive_value=normalize_output_value(pick(entry, "inactiveValue", "inactive_value", default=""), False),
        chirp=as_bool(entry.get("chirp"), False, "chirp"),
    )


def unique_outputs(outputs: Iterable[OutputDefinition]) -> List[OutputDefinition]:
    """Drop repeated output ids; the last definition wins, in first-seen order."""
    by_id: Dict[str, OutputDefinition] = {}
    for output in outputs:
        if output.id in by_id:
            logger.warning("Duplicate output id %s, the last definition wins", output.id)
        by_id[output.id] = output
    return list(by_id.values())


def decode_all(entries: Iterable[Any], decoder: Callable[[Any, int], Optional[T]]) -> Tuple[List[T], bool]:
    """
    Run a decoder over a list of entries.

    Returns
    -------
    (list, bool)
        Decoded records and whether every entry was usable.
    """
    decoded: List[T] = []
    complete = True
    for index, entry in enumerate(entries):
        item = decoder(entry, index)
        if item is None:
            complete = False
            continue
        decoded.append(item)
    return decoded, complete
