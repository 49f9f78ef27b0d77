"""Quotation aggregate, the core of the domain.

The Quotation is an aggregate root that owns its line items and enforces
the DRAFT -> PENDING -> SOLD / CANCELLED state machine.  It performs no
I/O: prices are always handed in by the caller.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from qms.domain.exceptions import InvalidStateError, ValidationError
from qms.domain.model.line_item import (
    FrozenLineItem,
    LineItem,
    PricedLineItem,
    UnpricedLineItem,
)
from qms.domain.model.product import ProductSnapshot
from qms.domain.model.value_objects import Money, Quantity


class QuotationStatus(Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    SOLD = "SOLD"
    CANCELLED = "CANCELLED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class QuotationEvent:
    """Audit record appended to the quotation's event log.

    The log is for audit only; state is never rebuilt from it.
    """

    type: str
    timestamp: datetime
    total_amount: Money


@dataclass
class Quotation:
    """Aggregate root for quotations.

    Use ``Quotation.create()`` for new quotations, it enforces all
    business rules.  The ``__init__`` stays simple so the repository can
    reconstitute persisted quotations without re-validating.
    """

    id: str
    customer_id: str
    line_items: list[LineItem]
    status: QuotationStatus = QuotationStatus.DRAFT
    total_amount: Money = field(default_factory=Money.zero)
    created_by: str = "system"
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime | None = None
    version: int = 1
    event_log: list[QuotationEvent] = field(default_factory=list)

    # --- Factory (used for NEW quotations only) -------------------------------

    @staticmethod
    def create(
        customer_id: str,
        items: list[UnpricedLineItem],
        priced: list[ProductSnapshot],
        created_by: str = "system",
    ) -> Quotation:
        """Create a DRAFT quotation priced from *priced* snapshots."""
        if not customer_id or not customer_id.strip():
            raise ValidationError("Customer ID is required")
        if not items:
            raise ValidationError("At least one item is required")

        catalog = {snapshot.product_id: snapshot for snapshot in priced}
        line_items: list[LineItem] = []
        for item in items:
            if not item.product_id or not item.product_id.strip():
                raise ValidationError("Product ID is required")
            snapshot = catalog.get(item.product_id)
            if snapshot is None:
                raise ValidationError(
                    f"No price available for product '{item.product_id}'"
                )
            line_items.append(
                PricedLineItem(
                    product_id=item.product_id,
                    product_name=snapshot.name,
                    quantity=item.quantity,
                    unit_price=snapshot.price,
                )
            )

        quotation = Quotation(
            id=str(uuid.uuid4()),
            customer_id=customer_id.strip(),
            line_items=line_items,
            created_by=created_by,
        )
        quotation.total_amount = quotation.calculate_total()
        quotation._record("QuotationCreated")
        return quotation

    # --- State transitions ----------------------------------------------------

    def submit(self) -> None:
        """Transition DRAFT -> PENDING (ready for approval)."""
        if self.status != QuotationStatus.DRAFT:
            raise InvalidStateError(
                f"Only DRAFT quotations can be submitted, "
                f"current status is {self.status.value}"
            )
        self.status = QuotationStatus.PENDING
        self._touch()
        self._record("QuotationSubmitted")

    def approve(self, current_prices: dict[str, Money]) -> None:
        """Transition PENDING -> SOLD, re-pricing and freezing every item.

        Each item takes ``current_prices[product_id]`` when present and
        keeps its existing price otherwise.
        """
        self.ensure_can_approve()

        priced = [item for item in self.line_items if isinstance(item, PricedLineItem)]
        if len(priced) != len(self.line_items):
            raise InvalidStateError(f"Quotation {self.id} has already frozen items")

        frozen: list[LineItem] = []
        for item in priced:
            price = current_prices.get(item.product_id)
            if price is not None:
                item.reprice(price)
            frozen.append(item.freeze())

        self.line_items = frozen
        self.total_amount = self.calculate_total()
        self.status = QuotationStatus.SOLD
        self._touch()
        self._record("QuotationApproved")

    def ensure_can_approve(self) -> None:
        if self.status != QuotationStatus.PENDING:
            raise InvalidStateError(
                f"Only PENDING quotations can be approved, "
                f"current status is {self.status.value}"
            )

    def cancel(self) -> None:
        """Transition DRAFT|PENDING -> CANCELLED.

        Cancelling an already cancelled quotation is a no-op.
        """
        if self.status == QuotationStatus.SOLD:
            raise InvalidStateError("Cannot cancel a SOLD quotation")
        if self.status == QuotationStatus.CANCELLED:
            return
        self.status = QuotationStatus.CANCELLED
        self._touch()
        self._record("QuotationCancelled")

    # --- Computed properties --------------------------------------------------

    def calculate_total(self) -> Money:
        result = Money.zero()
        for item in self.line_items:
            result = result + item.line_total
        return result

    @property
    def is_frozen(self) -> bool:
        return all(isinstance(item, FrozenLineItem) for item in self.line_items)

    @property
    def product_ids(self) -> list[str]:
        """Distinct product ids in line-item order."""
        return list(dict.fromkeys(item.product_id for item in self.line_items))

    # --- Internal helpers -----------------------------------------------------

    def _touch(self) -> None:
        self.updated_at = _utcnow()

    def _record(self, event_type: str) -> None:
        self.event_log.append(
            QuotationEvent(
                type=event_type,
                timestamp=_utcnow(),
                total_amount=self.total_amount,
            )
        )


def unpriced(product_id: str, quantity: int) -> UnpricedLineItem:
    """Build an ``UnpricedLineItem``, validating the quantity."""
    return UnpricedLineItem(product_id=product_id, quantity=Quantity(quantity))

