"""HTTP implementation of ProductLookup against the inventory service.

Uses one batched ``GET /api/v1/products?ids=...`` call per lookup.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

import httpx

from qms.domain.exceptions import DependencyTimeoutError, DependencyUnavailableError
from qms.domain.model.product import ProductSnapshot
from qms.domain.model.value_objects import Money
from qms.domain.ports.product_lookup import ProductLookup

logger = logging.getLogger(__name__)

PRODUCTS_PATH = "/api/v1/products"


class HttpProductLookup(ProductLookup):

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
        )

    def get_products(self, product_ids: list[str]) -> list[ProductSnapshot]:
        if not product_ids:
            return []
        try:
            resp = self._client.get(PRODUCTS_PATH, params={"ids": ",".join(product_ids)})
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Product lookup timed out for %s", product_ids)
            raise DependencyTimeoutError(f"Inventory lookup timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise DependencyUnavailableError(
                f"Inventory lookup failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DependencyUnavailableError(f"Inventory lookup failed: {exc}") from exc

        try:
            return [
                ProductSnapshot(
                    product_id=str(raw["id"]),
                    name=raw["name"],
                    price=Money(Decimal(str(raw["price"]))),
                )
                for raw in resp.json()
            ]
        except (ValueError, KeyError, TypeError, InvalidOperation) as exc:
            raise DependencyUnavailableError(
                f"Inventory returned an unreadable product list: {exc}"
            ) from exc

    def close(self) -> None:
        self._client.close()
