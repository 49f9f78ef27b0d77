"""Integration tests for the StockReconciler.

Covers exactly-once stock effects under duplicate delivery and
all-or-nothing application on failure.
"""

from datetime import datetime, timezone

import pytest

from qms.application.approve_quotation import ApproveQuotationHandler
from qms.application.create_quotation import CreateQuotationHandler
from qms.application.dto import QuotationItemSpec
from qms.application.reconcile_stock import StockReconciler
from qms.application.submit_quotation import SubmitQuotationHandler
from qms.domain.exceptions import InsufficientStockError
from qms.domain.model.events import QUOTATION_APPROVED, ApprovedLineItem, QuotationApprovedEvent
from qms.domain.model.product import Product
from qms.domain.model.value_objects import Money
from qms.infrastructure.messaging.in_memory_channel import InMemoryEventChannel
from tests.fakes import FakeInventoryStore, FakeProductLookup, FakeQuotationRepository


def _store(*stock: tuple[str, int]) -> FakeInventoryStore:
    return FakeInventoryStore(
        [Product(id=pid, sku=pid, name=f"Product {pid}", price=Money.of("55.00"), stock=s)
         for pid, s in stock]
    )


def _event(quotation_id: str = "q1", *items: tuple[str, int]) -> QuotationApprovedEvent:
    return QuotationApprovedEvent(
        quotation_id=quotation_id,
        total_amount=Money.of("110.00"),
        timestamp=datetime.now(timezone.utc),
        line_items=tuple(
            ApprovedLineItem(pid, qty, Money.of("55.00")) for pid, qty in items or [("p1", 2)]
        ),
    )


class TestHandle:

    def test_decrements_stock_and_records_ledger(self):
        store = _store(("p1", 10))
        applied = StockReconciler(store).handle(_event("q1", ("p1", 2)))

        assert applied is True
        assert store.stock_of("p1") == 8
        assert [r.key for r in store.processed_events] == [("q1", QUOTATION_APPROVED)]

    def test_redelivery_is_a_no_op(self):
        store = _store(("p1", 10))
        reconciler = StockReconciler(store)
        event = _event("q1", ("p1", 2))

        assert reconciler.handle(event) is True
        assert reconciler.handle(event) is False

        assert store.stock_of("p1") == 8
        assert store.commits == 1

    def test_different_quotations_each_apply(self):
        store = _store(("p1", 10))
        reconciler = StockReconciler(store)
        reconciler.handle(_event("q1", ("p1", 2)))
        reconciler.handle(_event("q2", ("p1", 3)))
        assert store.stock_of("p1") == 5

    def test_insufficient_stock_applies_nothing(self):
        store = _store(("p1", 10), ("p2", 1))
        reconciler = StockReconciler(store)

        with pytest.raises(InsufficientStockError):
            reconciler.handle(_event("q1", ("p1", 2), ("p2", 5)))

        assert store.stock_of("p1") == 10
        assert store.processed_events == []

    def test_failed_commit_can_be_retried(self):
        store = _store(("p1", 10))
        store.fail_commit = OSError("disk full")
        reconciler = StockReconciler(store)

        with pytest.raises(OSError):
            reconciler.handle(_event("q1", ("p1", 2)))
        assert store.stock_of("p1") == 10

        store.fail_commit = None
        assert reconciler.handle(_event("q1", ("p1", 2))) is True
        assert store.stock_of("p1") == 8


class TestConsume:

    def test_duplicate_delivery_decrements_once(self):
        store = _store(("p1", 10))
        channel = InMemoryEventChannel()
        payload = _event("q1", ("p1", 2)).to_payload()
        channel.publish(QUOTATION_APPROVED, payload)
        channel.publish(QUOTATION_APPROVED, payload)  # simulated redelivery

        acked = StockReconciler(store).consume(channel)

        assert acked == 2
        assert store.stock_of("p1") == 8
        assert channel.pending(QUOTATION_APPROVED) == 0

    def test_failed_delivery_stays_unacked_and_is_retried(self):
        store = _store(("p1", 1))
        channel = InMemoryEventChannel()
        channel.publish(QUOTATION_APPROVED, _event("q1", ("p1", 2)).to_payload())
        reconciler = StockReconciler(store)

        assert reconciler.consume(channel) == 0
        assert channel.pending(QUOTATION_APPROVED) == 1

        # stock arrives, redelivery succeeds
        product = store.get_product("p1")
        product.adjust_stock(5)
        store.stage_product(product)
        store.commit()

        assert reconciler.consume(channel) == 1
        assert store.stock_of("p1") == 4
        assert channel.pending(QUOTATION_APPROVED) == 0

    def test_max_messages(self):
        store = _store(("p1", 10))
        channel = InMemoryEventChannel()
        channel.publish(QUOTATION_APPROVED, _event("q1", ("p1", 1)).to_payload())
        channel.publish(QUOTATION_APPROVED, _event("q2", ("p1", 1)).to_payload())

        assert StockReconciler(store).consume(channel, max_messages=1) == 1
        assert channel.pending(QUOTATION_APPROVED) == 1


class TestEndToEnd:

    def test_approved_quotation_reaches_stock_once(self):
        repo = FakeQuotationRepository()
        lookup = FakeProductLookup({"p1": "50.00"})
        channel = InMemoryEventChannel()
        store = _store(("p1", 10))

        quotation_id = CreateQuotationHandler(repo, lookup).handle("c1", [QuotationItemSpec("p1", 2)])
        SubmitQuotationHandler(repo).handle(quotation_id)
        lookup.set_price("p1", "55.00")
        ApproveQuotationHandler(repo, lookup, channel).handle(quotation_id)

        # at-least-once: the channel hands the same event out again
        _, payload = channel.published[0]
        channel.publish(QUOTATION_APPROVED, payload)

        reconciler = StockReconciler(store)
        reconciler.consume(channel)

        assert store.stock_of("p1") == 8
        assert store.get_processed_event(quotation_id, QUOTATION_APPROVED) is not None
