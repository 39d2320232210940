"""
Unit tests for smarthome_alarm.notification.webhook_notifier.

`requests.post` is replaced by a recorder, so no network is touched.

Checked here:
- the record payload is POSTed as JSON with the configured timeout/TLS flag
- Authorization is sent only when configured
- non-2xx responses surface as requests.HTTPError (the worker retries them)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest
import requests

from smarthome_alarm.core.state_store import StateStore
from smarthome_alarm.domain.events import EventRecord, EventSeverity, EventType
from smarthome_alarm.domain.models import ControlMode
from smarthome_alarm.notification.base import ALARM_EVENT, NotificationEvent
from smarthome_alarm.notification.payload import build_event_webhook_payload
from smarthome_alarm.notification.webhook_notifier import WebhookConfig, WebhookNotifier

URL = "https://receiver.example/alarm"


@pytest.fixture
def posts(monkeypatch) -> List[Dict[str, Any]]:
    """Every requests.post call as a kwargs dict (url included)."""
    calls: List[Dict[str, Any]] = []

    def fake_post(url: str, **kwargs: Any):
        calls.append({"url": url, **kwargs})
        response = MagicMock()
        response.status_code = 204
        return response

    monkeypatch.setattr("requests.post", fake_post)
    return calls


def _door_alarm() -> NotificationEvent:
    store = StateStore()
    store.update(mode=ControlMode.ALARM_FULL, alarm_active=True)
    record = EventRecord(
        sequence=12,
        type=EventType.ALARM_FULL_STARTED,
        mode=ControlMode.ALARM_FULL,
        severity=EventSeverity.ALARM,
        timestamp=datetime(2026, 3, 4, 22, 15, 0),
        message="Full alarm started (Front door)",
        sensor_id="front_door",
        sensor_name="Front door",
    )
    return NotificationEvent(
        type=ALARM_EVENT,
        payload=build_event_webhook_payload(store, record),
        severity="alarm",
        source="front_door",
        ts="2026-03-04T22:15:00",
    )


def test_posts_record_payload_as_json(posts) -> None:
    event = _door_alarm()
    WebhookNotifier(WebhookConfig(url=URL, timeout_s=3.0, verify_tls=False)).notify(event)

    assert len(posts) == 1
    call = posts[0]
    assert call["url"] == URL
    assert call["json"] is event.payload
    assert call["json"]["event"]["sensorId"] == "front_door"
    assert call["headers"] == {"Content-Type": "application/json"}
    assert (call["timeout"], call["verify"]) == (3.0, False)


def test_authorization_header_is_sent_when_configured(posts) -> None:
    notifier = WebhookNotifier(WebhookConfig(url=URL, auth_header="Bearer s3cret"))

    notifier.notify(_door_alarm())
    notifier.notify(_door_alarm())

    assert [c["headers"]["Authorization"] for c in posts] == ["Bearer s3cret"] * 2
    # defaults
    assert (posts[0]["timeout"], posts[0]["verify"]) == (2.0, True)


def test_http_error_propagates(monkeypatch) -> None:
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("503 Service Unavailable")
    monkeypatch.setattr("requests.post", lambda *args, **kwargs: response)

    with pytest.raises(requests.HTTPError):
        WebhookNotifier(WebhookConfig(url=URL)).notify(_door_alarm())


def test_connection_error_propagates(monkeypatch) -> None:
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr("requests.post", refuse)

    with pytest.raises(requests.RequestException):
        WebhookNotifier(WebhookConfig(url=URL)).notify(_door_alarm())
