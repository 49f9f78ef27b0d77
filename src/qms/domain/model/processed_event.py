"""Idempotency ledger entry written by the stock reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class ProcessedEventRecord:
    """Marks ``(event_id, event_type)`` as fully applied. Insert-only."""

    event_id: str
    event_type: str
    processed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def key(self) -> tuple[str, str]:
        return (self.event_id, self.event_type)
