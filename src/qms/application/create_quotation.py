"""Application service: Create Quotation use case.

Orchestrates the product lookup and the Quotation aggregate.  Nothing is
persisted unless every product was priced successfully.
"""

from __future__ import annotations

import logging

from qms.application.dto import QuotationItemSpec
from qms.application.pricing import fetch_snapshots
from qms.domain.exceptions import ValidationError
from qms.domain.model.quotation import Quotation, unpriced
from qms.domain.ports.product_lookup import ProductLookup
from qms.domain.repository.quotation_repository import QuotationRepository

logger = logging.getLogger(__name__)


class CreateQuotationHandler:

    def __init__(
        self,
        quotation_repo: QuotationRepository,
        product_lookup: ProductLookup,
    ) -> None:
        self._quotation_repo = quotation_repo
        self._product_lookup = product_lookup

    def handle(
        self,
        customer_id: str,
        item_specs: list[QuotationItemSpec],
        created_by: str = "system",
    ) -> str:
        """Create a DRAFT quotation and return its id.

        Steps:
        1. Validate the request shape (before any remote call).
        2. Price all distinct products with one lookup.
        3. Let the Quotation aggregate validate and compute the total.
        4. Persist once.
        """
        if not customer_id or not customer_id.strip():
            raise ValidationError("Customer ID is required")
        if not item_specs:
            raise ValidationError("At least one item is required")
        items = [unpriced(spec.product_id, spec.quantity) for spec in item_specs]
        for item in items:
            if not item.product_id or not item.product_id.strip():
                raise ValidationError("Product ID is required")

        snapshots = fetch_snapshots(
            self._product_lookup, [item.product_id for item in items]
        )

        quotation = Quotation.create(
            customer_id=customer_id,
            items=items,
            priced=list(snapshots.values()),
            created_by=created_by,
        )
        self._quotation_repo.add(quotation)

        logger.info(
            "Created quotation %s for customer %s (total %s)",
            quotation.id,
            quotation.customer_id,
            quotation.total_amount,
        )
        return quotation.id
