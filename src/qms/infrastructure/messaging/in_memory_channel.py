"""In-process event channel with at-least-once semantics.

Published messages stay queued until acked; every ``subscribe`` pass hands
out all un-acked messages for the topic again, in publish order.

With a *drain* callback the channel delivers synchronously: each publish
runs the consumer in the caller's process, and a message the consumer did
not ack is withdrawn and reported as a failed publish.  Nothing is kept
across processes, so the caller's outbox stays the durable copy.
"""

from __future__ import annotations

import copy
import itertools
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from qms.domain.exceptions import DependencyUnavailableError
from qms.domain.ports.event_channel import Delivery, EventPublisher, EventSubscriber

logger = logging.getLogger(__name__)


@dataclass
class _Message:

    message_id: str
    topic: str
    payload: dict
    attempts: int = 0


class InMemoryEventChannel(EventPublisher, EventSubscriber):

    def __init__(self, drain: Callable[[InMemoryEventChannel], object] | None = None) -> None:
        self._queue: list[_Message] = []
        self._published: list[tuple[str, dict]] = []
        self._ids = itertools.count(1)
        self._drain = drain

    def publish(self, topic: str, payload: dict) -> None:
        message = _Message(str(next(self._ids)), topic, copy.deepcopy(payload))
        self._queue.append(message)
        self._published.append((topic, copy.deepcopy(payload)))
        logger.debug("Published message %s on %s", message.message_id, topic)
        if self._drain is None:
            return

        try:
            self._drain(self)
        finally:
            delivered = message not in self._queue
            if not delivered:
                self._queue.remove(message)
        if not delivered:
            raise DependencyUnavailableError(
                f"In-process delivery of message {message.message_id} on {topic} failed"
            )

    def subscribe(self, topic: str) -> Iterator[Delivery]:
        for message in [m for m in self._queue if m.topic == topic]:
            message.attempts += 1
            yield Delivery(
                delivery_id=message.message_id,
                topic=topic,
                payload=copy.deepcopy(message.payload),
                _ack=self._acker(message),
                attempt=message.attempts,
            )

    @property
    def published(self) -> list[tuple[str, dict]]:
        """Every ``(topic, payload)`` ever published, acked or not."""
        return list(self._published)

    def pending(self, topic: str) -> int:
        return sum(1 for m in self._queue if m.topic == topic)

    def _acker(self, message: _Message):
        def ack() -> None:
            if message in self._queue:
                self._queue.remove(message)

        return ack
