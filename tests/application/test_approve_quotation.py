"""Integration tests for the ApproveQuotation use case."""

import pytest

from qms.application.approve_quotation import ApproveQuotationHandler
from qms.application.create_quotation import CreateQuotationHandler
from qms.application.dto import QuotationItemSpec
from qms.application.submit_quotation import SubmitQuotationHandler
from qms.domain.exceptions import (
    ConcurrentModificationError,
    DependencyTimeoutError,
    EntityNotFoundError,
    InvalidStateError,
)
from qms.domain.model.events import QUOTATION_APPROVED
from qms.domain.model.line_item import FrozenLineItem
from qms.domain.model.quotation import QuotationStatus
from qms.domain.model.value_objects import Money
from qms.infrastructure.messaging.in_memory_channel import InMemoryEventChannel
from tests.fakes import FakeProductLookup, FakeQuotationRepository, FlakyPublisher


def _setup():
    repo = FakeQuotationRepository()
    lookup = FakeProductLookup({"p1": "50.00", "p2": "10.00"})
    channel = InMemoryEventChannel()
    return repo, lookup, channel


def _pending_quotation(repo, lookup, items=None) -> str:
    quotation_id = CreateQuotationHandler(repo, lookup).handle(
        "c1", items or [QuotationItemSpec("p1", 2)]
    )
    SubmitQuotationHandler(repo).handle(quotation_id)
    return quotation_id


class TestApproveHappyPath:

    def test_reprices_freezes_and_publishes(self):
        repo, lookup, channel = _setup()
        quotation_id = _pending_quotation(repo, lookup)
        lookup.set_price("p1", "55.00")

        ApproveQuotationHandler(repo, lookup, channel).handle(quotation_id)

        saved = repo.get_by_id(quotation_id)
        assert saved.status == QuotationStatus.SOLD
        assert saved.total_amount == Money.of("110.00")
        item = saved.line_items[0]
        assert isinstance(item, FrozenLineItem)
        assert item.unit_price == Money.of("55.00")

        assert len(channel.published) == 1
        topic, payload = channel.published[0]
        assert topic == QUOTATION_APPROVED
        assert payload["quotationId"] == quotation_id
        assert payload["totalAmount"] == "110.00"
        assert payload["lineItems"] == [{"productId": "p1", "quantity": 2, "unitPrice": "55.00"}]

    def test_returns_event(self):
        repo, lookup, channel = _setup()
        quotation_id = _pending_quotation(repo, lookup)
        event = ApproveQuotationHandler(repo, lookup, channel).handle(quotation_id)
        assert event.quotation_id == quotation_id
        assert event.total_amount == Money.of("100.00")

    def test_product_gone_from_catalog_keeps_quoted_price(self):
        repo, lookup, channel = _setup()
        quotation_id = _pending_quotation(
            repo, lookup, [QuotationItemSpec("p1", 1), QuotationItemSpec("p2", 3)]
        )
        lookup.remove("p2")
        lookup.set_price("p1", "60.00")

        ApproveQuotationHandler(repo, lookup, channel).handle(quotation_id)

        saved = repo.get_by_id(quotation_id)
        assert [i.unit_price for i in saved.line_items] == [Money.of("60.00"), Money.of("10.00")]
        assert saved.total_amount == Money.of("90.00")

    def test_version_bumped(self):
        repo, lookup, channel = _setup()
        quotation_id = _pending_quotation(repo, lookup)
        before = repo.get_by_id(quotation_id).version
        ApproveQuotationHandler(repo, lookup, channel).handle(quotation_id)
        assert repo.get_by_id(quotation_id).version == before + 1


class TestApproveRejections:

    def test_missing_quotation(self):
        repo, lookup, channel = _setup()
        with pytest.raises(EntityNotFoundError, match="not found"):
            ApproveQuotationHandler(repo, lookup, channel).handle("nope")

    def test_draft_rejected_without_lookup(self):
        repo, lookup, channel = _setup()
        quotation_id = CreateQuotationHandler(repo, lookup).handle("c1", [QuotationItemSpec("p1", 1)])
        lookup.calls.clear()

        with pytest.raises(InvalidStateError, match="Only PENDING"):
            ApproveQuotationHandler(repo, lookup, channel).handle(quotation_id)
        assert lookup.calls == []
        assert channel.published == []

    def test_second_approval_rejected(self):
        repo, lookup, channel = _setup()
        quotation_id = _pending_quotation(repo, lookup)
        handler = ApproveQuotationHandler(repo, lookup, channel)
        handler.handle(quotation_id)

        with pytest.raises(InvalidStateError):
            handler.handle(quotation_id)
        assert len(channel.published) == 1

    def test_lookup_timeout_changes_nothing(self):
        repo, lookup, channel = _setup()
        quotation_id = _pending_quotation(repo, lookup)
        lookup.error = DependencyTimeoutError("slow inventory")

        with pytest.raises(DependencyTimeoutError):
            ApproveQuotationHandler(repo, lookup, channel).handle(quotation_id)
        assert repo.get_by_id(quotation_id).status == QuotationStatus.PENDING
        assert channel.published == []

    def test_racing_approvals_lose_with_concurrent_modification(self):
        repo, lookup, channel = _setup()
        quotation_id = _pending_quotation(repo, lookup)
        stale = repo.get_by_id(quotation_id)

        ApproveQuotationHandler(repo, lookup, channel).handle(quotation_id)

        stale.approve({})
        with pytest.raises(ConcurrentModificationError):
            repo.update(stale)


class TestApprovePublishFailure:

    def test_publish_failure_keeps_event_in_outbox(self):
        repo, lookup, _ = _setup()
        quotation_id = _pending_quotation(repo, lookup)
        publisher = FlakyPublisher(failures=1)

        ApproveQuotationHandler(repo, lookup, publisher).handle(quotation_id)

        assert repo.get_by_id(quotation_id).status == QuotationStatus.SOLD
        assert publisher.published == []
        pending = repo.pending_outbox()
        assert len(pending) == 1
        assert pending[0].payload["quotationId"] == quotation_id
