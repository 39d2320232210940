from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from smarthome_alarm.core.config.sensor_decoders import (
    as_bool,
    decode_all,
    decode_output,
    decode_sensor,
    non_negative_int,
    pick,
    unique_outputs,
)
from smarthome_alarm.domain.models import OutputDefinition, SensorDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookConfigData:
    """Webhook notifier configuration (URL + auth)."""
    url: str
    auth_header: Optional[str] = None
    timeout_s: float = 3.0
    verify_tls: bool = True


@dataclass(frozen=True)
class AlarmConfig:
    """
    Root alarm configuration.

    Delays are whole seconds and never negative. ``configured`` is False when
    at least one sensor or output entry had to be skipped at load time.
    """
    exit_delay_sec: int = 30
    entry_delay_sec: int = 30
    pre_alarm_sec: int = 0
    alarm_duration_sec: int = 180
    chirp_sec: int = 0
    block_arming_if_open: bool = False
    auto_bypass_open_on_arming: bool = False
    strict_bypass: bool = False
    use_baseline_snapshot: bool = False
    chirp_after_alarm_disarm: bool = False
    debounce_ms_default: int = 0
    sensors: List[SensorDefinition] = field(default_factory=list)
    outputs: List[OutputDefinition] = field(default_factory=list)
    webhook: Optional[WebhookConfigData] = None
    configured: bool = True


_INT_FIELDS = {
    "exit_delay_sec": "exitDelaySec",
    "entry_delay_sec": "entryDelaySec",
    "pre_alarm_sec": "preAlarmSec",
    "alarm_duration_sec": "alarmDurationSec",
    "chirp_sec": "chirpSec",
    "debounce_ms_default": "debounceMsDefault",
}

_BOOL_FIELDS = {
    "block_arming_if_open": "blockArmingIfOpen",
    "auto_bypass_open_on_arming": "autoBypassOpenOnArming",
    "strict_bypass": "strictBypass",
    "use_baseline_snapshot": "useBaselineSnapshot",
    "chirp_after_alarm_disarm": "chirpAfterAlarmDisarm",
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a YAML mapping at the root")
    return data


def _resolve_default_config_path() -> Path:
    """
    Resolve config.yaml location.

    Priority:
    1) ALARM_CONFIG env var if provided
    2) config.yaml next to the executable
    3) ./config.yaml in current working directory
    """
    import os
    import sys

    env = os.getenv("ALARM_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    exe_dir = Path(sys.executable).resolve().parent
    candidate = exe_dir / "config.yaml"
    if candidate.exists():
        return candidate

    return Path("config.yaml").resolve()


def _parse_webhook(raw: Any) -> Optional[WebhookConfigData]:
    if not raw:
        return None
    if not isinstance(raw, Mapping) or not raw.get("url"):
        raise ValueError("webhook section requires a 'url'")
    return WebhookConfigData(
        url=str(raw["url"]),
        auth_header=raw.get("auth_header"),
        timeout_s=float(raw.get("timeout_s", 3.0)),
        verify_tls=bool(raw.get("verify_tls", True)),
    )


def _as_list(value: Any, section: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("'%s' must be a list, ignoring it", section)
        return []
    return value


def parse_alarm_config(raw: Mapping[str, Any]) -> AlarmConfig:
    """
    Convert a raw mapping (parsed YAML) into an :class:`AlarmConfig`.

    Top-level keys are accepted in snake_case or camelCase. Invalid values
    never abort the load: they are normalized or skipped with a warning.

    Parameters
    ----------
    raw
        Mapping with the configuration keys.

    Returns
    -------
    AlarmConfig
        Parsed configuration.

    Raises
    ------
    ValueError
        If a webhook section is present without a URL.
    """
    defaults = AlarmConfig()
    values: Dict[str, Any] = {}

    for name, camel in _INT_FIELDS.items():
        values[name] = non_negative_int(pick(raw, name, camel), getattr(defaults, name), name)
    for name, camel in _BOOL_FIELDS.items():
        values[name] = as_bool(pick(raw, name, camel), getattr(defaults, name), name)

    sensors, sensors_ok = decode_all(_as_list(raw.get("sensors"), "sensors"), decode_sensor)
    outputs, outputs_ok = decode_all(_as_list(raw.get("outputs"), "outputs"), decode_output)

    return AlarmConfig(
        sensors=sensors,
        outputs=unique_outputs(outputs),
        webhook=_parse_webhook(raw.get("webhook")),
        configured=sensors_ok and outputs_ok,
        **values,
    )


def load_alarm_config(path: Optional[str] = None) -> AlarmConfig:
    """
    Load alarm configuration from YAML and convert into typed config objects.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Returns
    -------
    AlarmConfig
        Parsed and validated configuration.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If the YAML root is not a mapping or the webhook section is invalid.
    """
    cfg_path = Path(path).expanduser().resolve() if path else _resolve_default_config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    cfg = parse_alarm_config(_read_yaml(cfg_path))
    logger.info(
        "Loaded %s: %d sensors, %d outputs%s",
        cfg_path,
        len(cfg.sensors),
        len(cfg.outputs),
        "" if cfg.configured else " (some entries skipped)",
    )
    return cfg
