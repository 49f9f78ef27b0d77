"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI/HTTP and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from qms.domain.model.line_item import FrozenLineItem
from qms.domain.model.quotation import Quotation


@dataclass(frozen=True)
class QuotationItemSpec:
    """Input: what the customer asked for (product id + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class QuotationLineItemDTO:

    product_id: str
    product_name: str
    quantity: int
    unit_price: str  # decimal string, e.g. "50.00"
    line_total: str
    price_snapshot: bool


@dataclass(frozen=True)
class QuotationDTO:

    id: str
    customer_id: str
    status: str
    items: list[QuotationLineItemDTO]
    total_amount: str
    created_by: str
    created_at: str
    updated_at: str | None
    version: int

    @staticmethod
    def from_domain(quotation: Quotation) -> QuotationDTO:
        return QuotationDTO(
            id=quotation.id,
            customer_id=quotation.customer_id,
            status=quotation.status.value,
            items=[
                QuotationLineItemDTO(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity.value,
                    unit_price=str(item.unit_price),
                    line_total=str(item.line_total),
                    price_snapshot=isinstance(item, FrozenLineItem),
                )
                for item in quotation.line_items
            ],
            total_amount=str(quotation.total_amount),
            created_by=quotation.created_by,
            created_at=quotation.created_at.isoformat(),
            updated_at=quotation.updated_at.isoformat() if quotation.updated_at else None,
            version=quotation.version,
        )


@dataclass(frozen=True)
class QuotationSummaryDTO:
    """Output: one row of the quotation listing."""

    id: str
    customer_id: str
    status: str
    total_amount: str
    item_count: int
    created_at: str
