"""JSON-file-backed implementation of InventoryStore.

Products and the processed-event ledger share one document; ``commit()``
rewrites it atomically, so stock decrements and their ledger entry are
never observed apart.  Staged products are checked against the on-disk
row they were derived from, so a unit of work built on a stale read fails
with ``ConcurrentModificationError`` instead of overwriting a concurrent
commit.
"""

from __future__ import annotations

import copy
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from qms.domain.exceptions import ConcurrentModificationError, ValidationError
from qms.domain.model.processed_event import ProcessedEventRecord
from qms.domain.model.product import Product
from qms.domain.model.value_objects import Money
from qms.domain.repository.inventory_store import InventoryStore
from qms.infrastructure.persistence.json_file import JsonDocument


class JsonInventoryStore(InventoryStore):

    def __init__(self, file_path: Path) -> None:
        self._doc = JsonDocument(file_path, {"products": [], "processed_events": []})
        self._staged_products: dict[str, Product] = {}
        self._staged_events: dict[tuple[str, str], ProcessedEventRecord] = {}
        # on-disk row each staged product was derived from (None: absent)
        self._read_rows: dict[str, dict | None] = {}

    # --- InventoryStore interface ---------------------------------------------

    def get_product(self, product_id: str) -> Product | None:
        if product_id in self._staged_products:
            return copy.deepcopy(self._staged_products[product_id])
        raw = self._find_row(self._doc.load(), product_id)
        self._read_rows.setdefault(product_id, copy.deepcopy(raw))
        return self._product_to_domain(raw) if raw is not None else None

    def list_products(self) -> list[Product]:
        products = {
            raw["id"]: self._product_to_domain(raw) for raw in self._doc.load()["products"]
        }
        products.update(copy.deepcopy(self._staged_products))
        return list(products.values())

    def stage_product(self, product: Product) -> None:
        if product.id not in self._read_rows:
            self._read_rows[product.id] = self._find_row(self._doc.load(), product.id)
        self._staged_products[product.id] = copy.deepcopy(product)

    def get_processed_event(
        self, event_id: str, event_type: str
    ) -> ProcessedEventRecord | None:
        staged = self._staged_events.get((event_id, event_type))
        if staged is not None:
            return staged
        for raw in self._doc.load()["processed_events"]:
            if raw["event_id"] == event_id and raw["event_type"] == event_type:
                return self._record_to_domain(raw)
        return None

    def stage_processed_event(self, record: ProcessedEventRecord) -> None:
        if self.get_processed_event(record.event_id, record.event_type) is not None:
            raise ValidationError(
                f"Event {record.event_id} ({record.event_type}) is already recorded"
            )
        self._staged_events[record.key] = record

    def commit(self) -> None:
        try:
            with self._doc.locked():
                data = self._doc.load()
                self._check_not_stale(data)
                products = {raw["id"]: raw for raw in data["products"]}
                for product in self._staged_products.values():
                    products[product.id] = self._product_to_raw(product)
                data["products"] = list(products.values())
                data["processed_events"].extend(
                    self._record_to_raw(r) for r in self._staged_events.values()
                )
                self._doc.persist(data)
        finally:
            self.rollback()

    def rollback(self) -> None:
        self._staged_products.clear()
        self._staged_events.clear()
        self._read_rows.clear()

    def _check_not_stale(self, data: dict) -> None:
        for raw in data["processed_events"]:
            if (raw["event_id"], raw["event_type"]) in self._staged_events:
                raise ValidationError(
                    f"Event {raw['event_id']} ({raw['event_type']}) is already recorded"
                )
        for product_id in self._staged_products:
            if self._find_row(data, product_id) != self._read_rows.get(product_id):
                raise ConcurrentModificationError(
                    f"Product {product_id} was modified concurrently; retry the operation"
                )

    @staticmethod
    def _find_row(data: dict, product_id: str) -> dict | None:
        for raw in data["products"]:
            if raw["id"] == product_id:
                return raw
        return None

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _product_to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "sku": product.sku,
            "name": product.name,
            "price": str(product.price.amount),
            "currency": product.price.currency,
            "stock": product.stock,
            "created_at": product.created_at.isoformat(),
            "updated_at": product.updated_at.isoformat() if product.updated_at else None,
        }

    @staticmethod
    def _product_to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            sku=raw.get("sku", raw["id"]),
            name=raw["name"],
            price=Money(Decimal(raw["price"]), raw.get("currency", "USD")),
            stock=raw.get("stock", 0),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=(
                datetime.fromisoformat(raw["updated_at"]) if raw.get("updated_at") else None
            ),
        )

    @staticmethod
    def _record_to_raw(record: ProcessedEventRecord) -> dict:
        return {
            "event_id": record.event_id,
            "event_type": record.event_type,
            "processed_at": record.processed_at.isoformat(),
        }

    @staticmethod
    def _record_to_domain(raw: dict) -> ProcessedEventRecord:
        return ProcessedEventRecord(
            event_id=raw["event_id"],
            event_type=raw["event_type"],
            processed_at=datetime.fromisoformat(raw["processed_at"]),
        )
