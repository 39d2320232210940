"""
Unit tests for smarthome_alarm.core.config.yaml_config.

Validates:
- defaults for an empty mapping
- snake_case and camelCase top-level keys
- clamping / fallback of invalid numbers and booleans
- duplicate output ids (last definition wins, with a warning)
- loading from a file, from ALARM_CONFIG, and the error cases
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from smarthome_alarm.core.config.yaml_config import AlarmConfig, load_alarm_config, parse_alarm_config
from smarthome_alarm.domain.models import SensorPolicy

CONFIG_YAML = """
exitDelaySec: 20
entry_delay_sec: 15
preAlarmSec: 5
autoBypassOpenOnArming: true
debounceMsDefault: 200
sensors:
  - stateId: hall.door
    name: Front door
    role: entry
  - id: living.motion
    name: Motion
    guideline: all
outputs:
  - id: siren1
    name: Siren
    type: siren
    chirp: true
webhook:
  url: http://127.0.0.1:8080/webhook
  auth_header: secret
"""


def test_empty_mapping_gives_defaults() -> None:
    cfg = parse_alarm_config({})

    assert cfg == AlarmConfig()
    assert cfg.exit_delay_sec == 30
    assert cfg.alarm_duration_sec == 180
    assert cfg.configured is True


def test_camel_and_snake_case_keys() -> None:
    cfg = parse_alarm_config({"exitDelaySec": 5, "entry_delay_sec": 7, "strictBypass": True})

    assert cfg.exit_delay_sec == 5
    assert cfg.entry_delay_sec == 7
    assert cfg.strict_bypass is True


def test_invalid_values_are_normalized() -> None:
    cfg = parse_alarm_config({"exitDelaySec": -3, "chirpSec": "abc", "useBaselineSnapshot": "maybe"})

    assert cfg.exit_delay_sec == 0
    assert cfg.chirp_sec == 0
    assert cfg.use_baseline_snapshot is False


def test_non_list_sensors_are_ignored() -> None:
    cfg = parse_alarm_config({"sensors": {"id": "x"}})

    assert cfg.sensors == []


def test_skipped_entry_marks_not_configured() -> None:
    cfg = parse_alarm_config({"sensors": [{"name": "no id"}]})

    assert cfg.sensors == []
    assert cfg.configured is False


def test_duplicate_output_id_last_wins(caplog) -> None:
    raw = {
        "outputs": [
            {"id": "siren", "name": "Old siren"},
            {"id": "light", "type": "light"},
            {"id": "siren", "name": "Hall siren", "chirp": True},
        ]
    }

    with caplog.at_level(logging.WARNING):
        cfg = parse_alarm_config(raw)

    assert [o.id for o in cfg.outputs] == ["siren", "light"]
    assert cfg.outputs[0].name == "Hall siren"
    assert cfg.outputs[0].chirp is True
    assert cfg.configured is True
    assert "Duplicate output id siren" in caplog.text


def test_webhook_requires_url() -> None:
    with pytest.raises(ValueError):
        parse_alarm_config({"webhook": {"auth_header": "x"}})


def test_load_from_file(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")

    cfg = load_alarm_config(str(path))

    assert cfg.exit_delay_sec == 20
    assert cfg.entry_delay_sec == 15
    assert cfg.pre_alarm_sec == 5
    assert cfg.auto_bypass_open_on_arming is True
    assert cfg.debounce_ms_default == 200
    assert [s.id for s in cfg.sensors] == ["hall.door", "living.motion"]
    assert cfg.sensors[0].policy == SensorPolicy.ENTRY_DELAY
    assert cfg.outputs[0].chirp is True
    assert cfg.webhook is not None
    assert cfg.webhook.url == "http://127.0.0.1:8080/webhook"
    assert cfg.webhook.auth_header == "secret"


def test_load_from_env_var(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "alarm.yaml"
    path.write_text("exitDelaySec: 3\n", encoding="utf-8")
    monkeypatch.setenv("ALARM_CONFIG", str(path))

    cfg = load_alarm_config()

    assert cfg.exit_delay_sec == 3


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_alarm_config(str(tmp_path / "missing.yaml"))


def test_non_mapping_root_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_alarm_config(str(path))


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert load_alarm_config(str(path)) == AlarmConfig()
