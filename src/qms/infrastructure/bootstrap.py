"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from qms.application.reconcile_stock import StockReconciler
from qms.domain.ports.product_lookup import ProductLookup
from qms.domain.repository.inventory_store import InventoryStore
from qms.domain.repository.quotation_repository import QuotationRepository
from qms.infrastructure.config import Settings
from qms.infrastructure.http.inventory_client import HttpProductLookup
from qms.infrastructure.messaging.in_memory_channel import InMemoryEventChannel
from qms.infrastructure.messaging.redis_stream_channel import RedisStreamEventChannel
from qms.infrastructure.persistence.json_inventory_store import JsonInventoryStore
from qms.infrastructure.persistence.json_quotation_repository import (
    JsonQuotationRepository,
)
from qms.infrastructure.persistence.store_product_lookup import StoreProductLookup

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def settings() -> Settings:
    return Settings.from_env()


def quotation_repository() -> QuotationRepository:
    return JsonQuotationRepository(settings().data_dir / "quotations.json")


def inventory_store() -> InventoryStore:
    return JsonInventoryStore(settings().data_dir / "inventory.json")


@lru_cache(maxsize=1)
def product_lookup() -> ProductLookup:
    cfg = settings()
    if cfg.inventory_url:
        return HttpProductLookup(cfg.inventory_url, timeout=cfg.lookup_timeout)
    return StoreProductLookup(inventory_store())


def _reconcile_in_process(channel: InMemoryEventChannel) -> int:
    return StockReconciler(inventory_store()).consume(channel)


@lru_cache(maxsize=1)
def event_channel() -> RedisStreamEventChannel | InMemoryEventChannel:
    cfg = settings()
    if cfg.event_backend == "redis":
        return RedisStreamEventChannel.from_url(
            cfg.redis_url, group=cfg.consumer_group, consumer=cfg.consumer_name
        )
    if cfg.event_backend != "memory":
        raise ValueError(f"Unknown event backend {cfg.event_backend!r}")
    logger.info("Using the in-process event channel; stock is reconciled on publish")
    return InMemoryEventChannel(drain=_reconcile_in_process)


def close_resources() -> None:
    """Close cached clients and forget them."""
    if product_lookup.cache_info().currsize:
        lookup = product_lookup()
        if isinstance(lookup, HttpProductLookup):
            lookup.close()
    product_lookup.cache_clear()
