"""In-process ProductLookup reading straight from the inventory store.

Used when sales and inventory run in the same process (CLI, single-node
deployments) and no inventory URL is configured.
"""

from __future__ import annotations

from qms.domain.model.product import ProductSnapshot
from qms.domain.ports.product_lookup import ProductLookup
from qms.domain.repository.inventory_store import InventoryStore


class StoreProductLookup(ProductLookup):

    def __init__(self, store: InventoryStore) -> None:
        self._store = store

    def get_products(self, product_ids: list[str]) -> list[ProductSnapshot]:
        snapshots = []
        for product_id in product_ids:
            product = self._store.get_product(product_id)
            if product is not None:
                snapshots.append(product.snapshot())
        return snapshots
