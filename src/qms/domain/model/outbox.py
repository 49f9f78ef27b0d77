"""Outbox message: an event stored alongside the state change that caused it.

Saved in the same write as the quotation, then relayed to the event
channel, so a crash between persisting and publishing never loses it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class OutboxMessage:

    topic: str
    payload: dict
    message_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    published_at: datetime | None = None

    @property
    def is_published(self) -> bool:
        return self.published_at is not None

    def mark_published(self) -> None:
        self.published_at = datetime.now(timezone.utc)
