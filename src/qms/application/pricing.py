"""Shared helper: fetch snapshots for a set of products through the lookup port."""

from __future__ import annotations

import logging

from qms.domain.exceptions import ProductNotFoundError
from qms.domain.model.product import ProductSnapshot
from qms.domain.ports.product_lookup import ProductLookup

logger = logging.getLogger(__name__)


def fetch_snapshots(
    lookup: ProductLookup,
    product_ids: list[str],
) -> dict[str, ProductSnapshot]:
    """One batched lookup for the distinct *product_ids*.

    Raises ProductNotFoundError for the first id the lookup did not return.
    Dependency errors from the port propagate unchanged.
    """
    distinct = list(dict.fromkeys(product_ids))
    snapshots = {s.product_id: s for s in lookup.get_products(distinct)}
    for product_id in distinct:
        if product_id not in snapshots:
            raise ProductNotFoundError(product_id)
    logger.debug("Fetched %d product snapshot(s)", len(snapshots))
    return snapshots
