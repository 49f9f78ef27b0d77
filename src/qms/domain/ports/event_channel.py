"""Port: durable pub/sub channel with at-least-once delivery.

Subscribers receive ``Delivery`` objects and must call ``ack()`` only
after the event has been fully processed.  An un-acked delivery is
handed out again later.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass


@dataclass
class Delivery:

    delivery_id: str
    topic: str
    payload: dict
    _ack: Callable[[], None]
    attempt: int = 1

    def ack(self) -> None:
        self._ack()


class EventPublisher(ABC):

    @abstractmethod
    def publish(self, topic: str, payload: dict) -> None:
        """Send *payload* on *topic*. Raises DependencyUnavailableError on failure."""


class EventSubscriber(ABC):

    @abstractmethod
    def subscribe(self, topic: str) -> Iterator[Delivery]:
        """Yield pending deliveries for *topic*; stops when none are left."""
