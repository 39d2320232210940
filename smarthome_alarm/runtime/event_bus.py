from __future__ import annotations

from dataclasses import dataclass, field
from queue import Full, Queue

from smarthome_alarm.domain.events import EventRecord


@dataclass
class EventBus:
    """
    In-process event bus for event records using a thread-safe queue.

    The bus provides a simple producer/consumer mechanism:
    - The event log publishes :class:`~smarthome_alarm.domain.events.EventRecord`
      via :meth:`publish_event`.
    - Consumers (e.g., the notification adapter thread) read from :attr:`events_q`.

    Concurrency Model
    -----------------
    Python's :class:`queue.Queue` is thread-safe. Multiple producers may call
    :meth:`publish_event` concurrently without additional locking.

    Backpressure Policy
    -------------------
    If the queue is full, records are dropped (best-effort). This prevents
    notification infrastructure overload from blocking the alarm worker.

    Attributes
    ----------
    events_q
        Bounded queue of event records. Consumers should drain this queue in a loop.
    """

    events_q: "Queue[EventRecord]" = field(default_factory=lambda: Queue(maxsize=5000))
    dropped: int = 0

    def publish_event(self, record: EventRecord) -> None:
        """
        Publish an event record to the queue (non-blocking).

        Parameters
        ----------
        record
            EventRecord to publish.

        Notes
        -----
        If the queue is full the record is dropped and :attr:`dropped` is
        incremented, to preserve worker responsiveness.
        """
        try:
            self.events_q.put_nowait(record)
        except Full:
            self.dropped += 1
