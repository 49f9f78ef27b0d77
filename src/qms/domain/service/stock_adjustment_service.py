"""Domain service: Stock Adjustment.

Decrements stock for every line item of an approved quotation.  The
two-phase approach (validate-then-mutate) ensures we never leave the
inventory partially decremented when one product fails validation.
"""

from __future__ import annotations

from qms.domain.exceptions import EntityNotFoundError, InsufficientStockError
from qms.domain.model.events import QuotationApprovedEvent
from qms.domain.model.product import Product
from qms.domain.repository.inventory_store import InventoryStore


class StockAdjustmentService:

    def __init__(self, store: InventoryStore) -> None:
        self._store = store

    def decrement_for_event(self, event: QuotationApprovedEvent) -> list[Product]:
        """Stage ``-quantity`` for every line item in the event.

        Phase 1, load and validate: every product exists and has enough
                  stock for the summed quantity.  Fails before any mutation.
        Phase 2, mutate and stage: adjust each product and stage it.
                  Nothing is written until the store commits.
        """
        # Phase 1: aggregate quantities per product and validate
        wanted: dict[str, int] = {}
        for line in event.line_items:
            wanted[line.product_id] = wanted.get(line.product_id, 0) + line.quantity

        products: list[tuple[Product, int]] = []
        for product_id, qty in wanted.items():
            product = self._store.get_product(product_id)
            if product is None:
                raise EntityNotFoundError(
                    f"No inventory record for product '{product_id}'"
                )
            if not product.has_stock(qty):
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name} "
                    f"(need {qty}, have {product.stock})"
                )
            products.append((product, qty))

        # Phase 2: mutate and stage
        for product, qty in products:
            product.adjust_stock(-qty)
            self._store.stage_product(product)

        return [product for product, _ in products]
