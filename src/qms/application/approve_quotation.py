"""Application service: Approve Quotation use case.

Ordering within one approval: price fetch, then freeze, then persist
(quotation + outbox message in one write), then publish.  A publish
failure leaves the message in the outbox for the relay to retry.
"""

from __future__ import annotations

import logging

from qms.application.outbox_relay import OutboxRelay
from qms.domain.exceptions import EntityNotFoundError
from qms.domain.model.events import QuotationApprovedEvent
from qms.domain.model.outbox import OutboxMessage
from qms.domain.ports.event_channel import EventPublisher
from qms.domain.ports.product_lookup import ProductLookup
from qms.domain.repository.quotation_repository import QuotationRepository

logger = logging.getLogger(__name__)


class ApproveQuotationHandler:

    def __init__(
        self,
        quotation_repo: QuotationRepository,
        product_lookup: ProductLookup,
        publisher: EventPublisher,
    ) -> None:
        self._quotation_repo = quotation_repo
        self._product_lookup = product_lookup
        self._relay = OutboxRelay(quotation_repo, publisher)

    def handle(self, quotation_id: str) -> QuotationApprovedEvent:
        quotation = self._quotation_repo.get_by_id(quotation_id)
        if quotation is None:
            raise EntityNotFoundError(f"Quotation {quotation_id} not found")

        # Fail fast on a bad state before calling out to inventory
        quotation.ensure_can_approve()

        # Products that vanished from the catalog keep their quoted price
        snapshots = self._product_lookup.get_products(quotation.product_ids)
        current_prices = {s.product_id: s.price for s in snapshots}

        quotation.approve(current_prices)
        event = QuotationApprovedEvent.from_quotation(quotation)

        self._quotation_repo.update(
            quotation,
            outbox=[OutboxMessage(topic=event.event_type, payload=event.to_payload())],
        )
        logger.info(
            "Quotation %s approved (total %s, version %d)",
            quotation.id,
            quotation.total_amount,
            quotation.version,
        )

        self._relay.flush()
        return event
