from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from smarthome_alarm.notification.base import NotificationEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookConfig:
    """
    Endpoint settings for pushing alarm events to a remote receiver.

    Parameters
    ----------
    url
        Receiver URL. Each event-log record is POSTed here as JSON.
    timeout_s
        Per-request timeout in seconds. Kept short so a dead receiver
        cannot hold the notification worker for long.
    verify_tls
        Set to False only for receivers with self-signed certificates.
    auth_header
        Value sent verbatim as ``Authorization`` (e.g. ``"Bearer <token>"``).
    """

    url: str
    timeout_s: float = 2.0
    verify_tls: bool = True
    auth_header: Optional[str] = None


class WebhookNotifier:
    """
    Notifier that POSTs alarm event payloads to an HTTP endpoint.

    Only ``event.payload`` goes on the wire; the envelope fields are used
    for logging. A non-2xx response raises ``requests.HTTPError`` so the
    notification worker can retry the record.
    """

    def __init__(self, cfg: WebhookConfig):
        self._cfg = cfg
        self._headers = self._build_headers(cfg)

    @staticmethod
    def _build_headers(cfg: WebhookConfig) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if cfg.auth_header:
            headers["Authorization"] = cfg.auth_header
        return headers

    def notify(self, event: NotificationEvent) -> None:
        response = requests.post(
            self._cfg.url,
            json=event.payload,
            headers=dict(self._headers),
            timeout=self._cfg.timeout_s,
            verify=self._cfg.verify_tls,
        )
        response.raise_for_status()
        logger.debug(
            "Webhook accepted %s (severity=%s, sensor=%s): HTTP %s",
            event.type,
            event.severity,
            event.source,
            response.status_code,
        )
