"""Integration events exchanged over the event channel.

``QuotationApprovedEvent`` is an immutable fact: it is published once per
successful approval, but consumers may see it more than once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from qms.domain.exceptions import ValidationError
from qms.domain.model.quotation import Quotation, QuotationStatus
from qms.domain.model.value_objects import Money, Quantity

QUOTATION_APPROVED = "quotation.approved"


@dataclass(frozen=True)
class ApprovedLineItem:

    product_id: str
    quantity: int
    unit_price: Money


@dataclass(frozen=True)
class QuotationApprovedEvent:

    quotation_id: str
    total_amount: Money
    timestamp: datetime
    line_items: tuple[ApprovedLineItem, ...]

    event_type = QUOTATION_APPROVED

    @property
    def event_id(self) -> str:
        """Idempotency key: one approval per quotation."""
        return self.quotation_id

    @staticmethod
    def from_quotation(quotation: Quotation) -> QuotationApprovedEvent:
        if quotation.status != QuotationStatus.SOLD or not quotation.is_frozen:
            raise ValidationError(
                f"Quotation {quotation.id} is not sold; nothing to announce"
            )
        return QuotationApprovedEvent(
            quotation_id=quotation.id,
            total_amount=quotation.total_amount,
            timestamp=quotation.updated_at or quotation.created_at,
            line_items=tuple(
                ApprovedLineItem(
                    product_id=item.product_id,
                    quantity=item.quantity.value,
                    unit_price=item.unit_price,
                )
                for item in quotation.line_items
            ),
        )

    # --- Wire format ----------------------------------------------------------

    def to_payload(self) -> dict:
        return {
            "quotationId": self.quotation_id,
            "totalAmount": str(self.total_amount.amount),
            "timestamp": self.timestamp.isoformat(),
            "lineItems": [
                {
                    "productId": item.product_id,
                    "quantity": item.quantity,
                    "unitPrice": str(item.unit_price.amount),
                }
                for item in self.line_items
            ],
        }

    @staticmethod
    def from_payload(payload: dict) -> QuotationApprovedEvent:
        """Parse a payload, raising ValidationError if it is malformed."""
        try:
            line_items = tuple(
                ApprovedLineItem(
                    product_id=str(raw["productId"]),
                    quantity=Quantity(int(raw["quantity"])).value,
                    unit_price=Money(Decimal(str(raw["unitPrice"]))),
                )
                for raw in payload["lineItems"]
            )
            return QuotationApprovedEvent(
                quotation_id=str(payload["quotationId"]),
                total_amount=Money(Decimal(str(payload["totalAmount"]))),
                timestamp=datetime.fromisoformat(payload["timestamp"]),
                line_items=line_items,
            )
        except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise ValidationError(f"Malformed {QUOTATION_APPROVED} payload: {exc}") from exc
