"""Application service: Stock Reconciler.

Consumes ``quotation.approved`` events and decrements stock exactly once
per event despite at-least-once delivery.  The stock changes and the
idempotency ledger record are committed together in one unit; on any
failure the unit is rolled back and the exception propagates so the
channel redelivers the whole event.
"""

from __future__ import annotations

import logging

from qms.domain.exceptions import DomainException
from qms.domain.model.events import QUOTATION_APPROVED, QuotationApprovedEvent
from qms.domain.model.processed_event import ProcessedEventRecord
from qms.domain.ports.event_channel import EventSubscriber
from qms.domain.repository.inventory_store import InventoryStore
from qms.domain.service.stock_adjustment_service import StockAdjustmentService

logger = logging.getLogger(__name__)


class StockReconciler:

    def __init__(self, store: InventoryStore) -> None:
        self._store = store

    def handle(self, event: QuotationApprovedEvent) -> bool:
        """Apply the event; return False if it had already been applied."""
        existing = self._store.get_processed_event(event.event_id, event.event_type)
        if existing is not None:
            logger.info(
                "Event %s (%s) already processed at %s, skipping",
                event.event_id,
                event.event_type,
                existing.processed_at.isoformat(),
            )
            return False

        try:
            StockAdjustmentService(self._store).decrement_for_event(event)
            self._store.stage_processed_event(
                ProcessedEventRecord(event_id=event.event_id, event_type=event.event_type)
            )
            self._store.commit()
        except Exception:
            self._store.rollback()
            raise

        logger.info(
            "Applied stock for event %s (%d line item(s))",
            event.event_id,
            len(event.line_items),
        )
        return True

    def consume(self, subscriber: EventSubscriber, max_messages: int | None = None) -> int:
        """Drain pending deliveries; return how many were acked.

        A delivery is acked only after ``handle`` succeeds.  Failed
        deliveries stay un-acked so the channel hands them out again.
        """
        acked = 0
        seen = 0
        for delivery in subscriber.subscribe(QUOTATION_APPROVED):
            seen += 1
            try:
                event = QuotationApprovedEvent.from_payload(delivery.payload)
                self.handle(event)
            except DomainException:
                logger.exception(
                    "Failed to process delivery %s (attempt %d), leaving it for redelivery",
                    delivery.delivery_id,
                    delivery.attempt,
                )
            else:
                delivery.ack()
                acked += 1
            if max_messages is not None and seen >= max_messages:
                break
        return acked
