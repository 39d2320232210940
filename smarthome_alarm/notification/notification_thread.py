from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Iterator, List, Optional

from smarthome_alarm.notification.base import NotificationEvent, Notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationThreadConfig:
    """
    Tuning for the notification worker.

    ``retry_count`` is the number of extra attempts after the first one;
    the n-th retry waits ``retry_backoff_s * 2**(n-1)`` seconds.
    """

    max_queue: int = 2000
    retry_count: int = 3
    retry_backoff_s: float = 0.5
    poll_timeout_s: float = 0.5


class NotificationWorkerThread:
    """
    Delivers alarm notifications off the alarm worker's thread.

    Concurrency Model
    -----------------
    - :meth:`emit` never blocks: when the queue is full the new notification
      is dropped and counted in ``dropped``.
    - One daemon thread drains the queue and hands each notification to
      every channel in order. A channel that keeps failing delays the
      channels after it by at most the full backoff schedule.

    Counters ``delivered`` and ``failed`` count per-channel outcomes and are
    only written by the worker thread.
    """

    def __init__(self, notifiers: List[Notifier], cfg: Optional[NotificationThreadConfig] = None):
        self._channels = list(notifiers)
        self._cfg = cfg or NotificationThreadConfig()
        self._q: "queue.Queue[Optional[NotificationEvent]]" = queue.Queue(maxsize=self._cfg.max_queue)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="notification-worker", daemon=True)
        self.dropped = 0
        self.delivered = 0
        self.failed = 0

    def start(self) -> None:
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        try:
            # wake the loop without waiting for the poll timeout
            self._q.put_nowait(None)
        except queue.Full:
            pass
        if self._thread.is_alive():
            self._thread.join(timeout=2.0)

    def emit(self, event: NotificationEvent) -> None:
        try:
            self._q.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            logger.warning(
                "Notification queue full (%d), dropping %s from %s",
                self._cfg.max_queue,
                event.type,
                event.source or "system",
            )

    def _backoff_delays(self) -> Iterator[float]:
        for retry in range(self._cfg.retry_count):
            yield self._cfg.retry_backoff_s * (2 ** retry)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                event = self._q.get(timeout=self._cfg.poll_timeout_s)
            except queue.Empty:
                continue
            if event is None:
                break
            for channel in self._channels:
                if self._deliver(channel, event):
                    self.delivered += 1
                else:
                    self.failed += 1

    def _deliver(self, channel: Notifier, event: NotificationEvent) -> bool:
        delays = self._backoff_delays()
        attempt = 1
        while True:
            try:
                channel.notify(event)
                return True
            except Exception as exc:
                delay = next(delays, None)
                if delay is None:
                    logger.error(
                        "Giving up on %s notification (%s) after %d attempts: %r",
                        event.severity or "info",
                        event.ts,
                        attempt,
                        exc,
                    )
                    return False
                logger.warning("Notification attempt %d failed, retrying in %.2fs: %r", attempt, delay, exc)
                if self._stop.wait(delay):
                    return False
                attempt += 1
