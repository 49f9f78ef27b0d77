"""Redis Streams implementation of the event channel.

Each topic is a stream; subscribers read through a consumer group and
``XACK`` only after processing.  Unlike plain Pub/Sub, entries published
while the consumer is down are kept, and un-acked entries are handed out
again on the next ``subscribe`` pass.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import redis

from qms.domain.exceptions import DependencyUnavailableError
from qms.domain.ports.event_channel import Delivery, EventPublisher, EventSubscriber

logger = logging.getLogger(__name__)


class RedisStreamEventChannel(EventPublisher, EventSubscriber):

    def __init__(
        self,
        client: redis.Redis,
        group: str = "inventory",
        consumer: str = "inventory-1",
        batch_size: int = 10,
        block_ms: int | None = 1000,
        claim_idle_ms: int | None = 60_000,
    ) -> None:
        # client must be created with decode_responses=True
        self._client = client
        self._group = group
        self._consumer = consumer
        self._batch_size = batch_size
        self._block_ms = block_ms
        self._claim_idle_ms = claim_idle_ms

    @classmethod
    def from_url(cls, url: str, **kwargs) -> RedisStreamEventChannel:
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def publish(self, topic: str, payload: dict) -> None:
        try:
            entry_id = self._client.xadd(topic, {"payload": json.dumps(payload)})
        except redis.RedisError as exc:
            raise DependencyUnavailableError(f"Publishing on {topic} failed: {exc}") from exc
        logger.debug("Published %s on stream %s", entry_id, topic)

    def subscribe(self, topic: str) -> Iterator[Delivery]:
        try:
            self._ensure_group(topic)
            if self._claim_idle_ms is not None:
                # take over entries left un-acked by crashed consumers
                self._client.xautoclaim(
                    topic, self._group, self._consumer, self._claim_idle_ms, start_id="0-0"
                )
        except redis.RedisError as exc:
            raise DependencyUnavailableError(f"Subscribing to {topic} failed: {exc}") from exc

        # Our own pending entries first, then new ones
        yield from self._read(topic, pending=True)
        yield from self._read(topic, pending=False)

    def _read(self, topic: str, pending: bool) -> Iterator[Delivery]:
        last_id = "0"
        while True:
            try:
                resp = self._client.xreadgroup(
                    self._group,
                    self._consumer,
                    {topic: last_id if pending else ">"},
                    count=self._batch_size,
                    block=None if pending else self._block_ms,
                )
            except redis.RedisError as exc:
                raise DependencyUnavailableError(f"Reading {topic} failed: {exc}") from exc

            entries = resp[0][1] if resp else []
            if not entries:
                return
            for entry_id, fields in entries:
                last_id = entry_id
                if not fields:
                    # trimmed from the stream while pending; nothing left to process
                    self._ack(topic, entry_id)
                    continue
                yield Delivery(
                    delivery_id=entry_id,
                    topic=topic,
                    payload=json.loads(fields["payload"]),
                    _ack=self._acker(topic, entry_id),
                    attempt=self._attempts(topic, entry_id) if pending else 1,
                )

    def _ensure_group(self, topic: str) -> None:
        try:
            self._client.xgroup_create(topic, self._group, id="0", mkstream=True)
        except redis.ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise

    def _attempts(self, topic: str, entry_id: str) -> int:
        try:
            info = self._client.xpending_range(
                topic, self._group, min=entry_id, max=entry_id, count=1
            )
        except redis.RedisError as exc:
            raise DependencyUnavailableError(f"Reading {topic} failed: {exc}") from exc
        return info[0]["times_delivered"] if info else 1

    def _ack(self, topic: str, entry_id: str) -> None:
        try:
            self._client.xack(topic, self._group, entry_id)
        except redis.RedisError as exc:
            raise DependencyUnavailableError(
                f"Acknowledging {entry_id} on {topic} failed: {exc}"
            ) from exc

    def _acker(self, topic: str, entry_id: str):
        def ack() -> None:
            self._ack(topic, entry_id)

        return ack
