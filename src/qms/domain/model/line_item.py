"""Quotation line items.

A line item moves through three structurally distinct shapes:

- ``UnpricedLineItem``: what the customer asked for (product + quantity).
- ``PricedLineItem``: priced from the product catalog; the price may still
  change while the quotation is DRAFT or PENDING.
- ``FrozenLineItem``: the immutable copy taken when a quotation is sold.
"""

from __future__ import annotations

from dataclasses import dataclass

from qms.domain.model.value_objects import Money, Quantity


@dataclass(frozen=True)
class UnpricedLineItem:

    product_id: str
    quantity: Quantity


@dataclass
class PricedLineItem:

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value

    def reprice(self, new_price: Money) -> None:
        self.unit_price = new_price

    def freeze(self) -> FrozenLineItem:
        return FrozenLineItem(
            product_id=self.product_id,
            product_name=self.product_name,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )


@dataclass(frozen=True)
class FrozenLineItem:
    """Price snapshot taken at approval time. Never changes again."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money

    price_snapshot = True

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


LineItem = PricedLineItem | FrozenLineItem
