"""Abstract unit of work for the inventory side.

Stock levels and the processed-event ledger are committed together so
that a stock decrement and its idempotency record land atomically.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from qms.domain.model.processed_event import ProcessedEventRecord
from qms.domain.model.product import Product


class InventoryStore(ABC):
    """Staged changes become visible only after ``commit()``."""

    @abstractmethod
    def get_product(self, product_id: str) -> Product | None:
        """Return a product (with its stock), or None if not found."""

    @abstractmethod
    def list_products(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def stage_product(self, product: Product) -> None:
        """Stage a new or updated product for the next commit."""

    @abstractmethod
    def get_processed_event(
        self, event_id: str, event_type: str
    ) -> ProcessedEventRecord | None:
        """Return the ledger entry for an event, or None."""

    @abstractmethod
    def stage_processed_event(self, record: ProcessedEventRecord) -> None:
        """Stage a ledger entry for the next commit.

        Raises ValidationError if the key is already recorded.
        """

    @abstractmethod
    def commit(self) -> None:
        """Atomically write every staged change, then clear the staging area.

        Raises ConcurrentModificationError when a staged product changed in
        storage after it was read; nothing is written in that case.
        """

    @abstractmethod
    def rollback(self) -> None:
        """Discard every staged change."""
