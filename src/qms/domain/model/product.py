"""Product models.

``ProductSnapshot`` is what the sales side sees of a product: a value
fetched through the product lookup port and never persisted on its own.

``Product`` is the inventory-side aggregate that owns the stock level.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from qms.domain.exceptions import InsufficientStockError, ValidationError
from qms.domain.model.value_objects import Money


@dataclass(frozen=True)
class ProductSnapshot:

    product_id: str
    name: str
    price: Money


@dataclass
class Product:
    """A product in the inventory catalog.

    Invariant: ``stock`` is never negative after an adjustment.
    """

    id: str
    sku: str
    name: str
    price: Money
    stock: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    def adjust_stock(self, adjustment: int) -> None:
        """Add *adjustment* (negative to decrement) to the stock level."""
        new_stock = self.stock + adjustment
        if new_stock < 0:
            raise InsufficientStockError(
                f"Insufficient stock for {self.name} "
                f"(need {-adjustment}, have {self.stock})"
            )
        self.stock = new_stock
        self.updated_at = datetime.now(timezone.utc)

    def has_stock(self, quantity: int) -> bool:
        return self.stock >= quantity

    def update_price(self, new_price: Money) -> None:
        """Change the catalog price.

        SOLD quotations are unaffected; their prices were frozen at approval.
        A zero price is allowed; Money already rejects negative amounts.
        """
        if new_price.currency != self.price.currency:
            raise ValidationError(
                f"Cannot reprice {self.name} from {self.price.currency} to {new_price.currency}"
            )
        self.price = new_price
        self.updated_at = datetime.now(timezone.utc)

    def snapshot(self) -> ProductSnapshot:
        return ProductSnapshot(product_id=self.id, name=self.name, price=self.price)
