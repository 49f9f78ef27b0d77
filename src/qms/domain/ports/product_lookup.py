"""Port: read current product prices from the inventory domain."""

from __future__ import annotations

from abc import ABC, abstractmethod

from qms.domain.model.product import ProductSnapshot


class ProductLookup(ABC):

    @abstractmethod
    def get_products(self, product_ids: list[str]) -> list[ProductSnapshot]:
        """Return snapshots for the ids that exist.

        Missing ids are simply absent from the result; callers decide
        whether that is an error.  Raises DependencyUnavailableError on
        transport failure and DependencyTimeoutError when the bounded
        timeout expires.
        """
