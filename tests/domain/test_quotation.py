"""Unit tests for the Quotation aggregate and its state machine."""

from decimal import Decimal

import pytest

from qms.domain.exceptions import InvalidStateError, ValidationError
from qms.domain.model.line_item import FrozenLineItem, PricedLineItem
from qms.domain.model.product import ProductSnapshot
from qms.domain.model.quotation import Quotation, QuotationStatus, unpriced
from qms.domain.model.value_objects import Money, Quantity


def _snapshot(product_id: str = "p1", price: str = "50.00") -> ProductSnapshot:
    return ProductSnapshot(product_id=product_id, name=f"Product {product_id}", price=Money.of(price))


def _quotation(status: QuotationStatus = QuotationStatus.PENDING, *items) -> Quotation:
    """Build a quotation directly, bypassing the factory."""
    line_items = [
        PricedLineItem(
            product_id=pid,
            product_name=f"Product {pid}",
            quantity=Quantity(qty),
            unit_price=Money.of(price),
        )
        for pid, qty, price in items or [("p1", 2, "50.00")]
    ]
    q = Quotation(id="q1", customer_id="c1", line_items=line_items, status=status)
    q.total_amount = q.calculate_total()
    return q


class TestQuotationCreation:

    def test_happy_path(self):
        q = Quotation.create("c1", [unpriced("p1", 2)], [_snapshot("p1", "50.00")])
        assert q.status == QuotationStatus.DRAFT
        assert q.total_amount == Money.of("100.00")
        assert q.customer_id == "c1"
        assert q.version == 1
        assert q.id

    def test_ids_are_unique(self):
        a = Quotation.create("c1", [unpriced("p1", 1)], [_snapshot()])
        b = Quotation.create("c1", [unpriced("p1", 1)], [_snapshot()])
        assert a.id != b.id

    def test_total_is_sum_of_line_items(self):
        q = Quotation.create(
            "c1",
            [unpriced("p1", 3), unpriced("p2", 5)],
            [_snapshot("p1", "15.00"), _snapshot("p2", "25.00")],
        )
        assert q.total_amount == Money.of("170.00")

    def test_line_items_keep_request_order_and_names(self):
        q = Quotation.create(
            "c1",
            [unpriced("p2", 1), unpriced("p1", 1)],
            [_snapshot("p1"), _snapshot("p2")],
        )
        assert [i.product_id for i in q.line_items] == ["p2", "p1"]
        assert q.line_items[0].product_name == "Product p2"
        assert all(isinstance(i, PricedLineItem) for i in q.line_items)

    def test_records_created_event(self):
        q = Quotation.create("c1", [unpriced("p1", 1)], [_snapshot()])
        assert [e.type for e in q.event_log] == ["QuotationCreated"]

    def test_empty_customer_rejected(self):
        with pytest.raises(ValidationError, match="Customer ID"):
            Quotation.create("  ", [unpriced("p1", 1)], [_snapshot()])

    def test_no_items_rejected(self):
        with pytest.raises(ValidationError, match="At least one item"):
            Quotation.create("c1", [], [_snapshot()])

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError, match="greater than 0"):
            Quotation.create("c1", [unpriced("p1", 0)], [_snapshot()])

    def test_unpriced_product_rejected(self):
        with pytest.raises(ValidationError, match="No price available for product 'p9'"):
            Quotation.create("c1", [unpriced("p9", 1)], [_snapshot("p1")])

    def test_blank_product_id_rejected(self):
        with pytest.raises(ValidationError, match="Product ID"):
            Quotation.create("c1", [unpriced("", 1)], [_snapshot()])


class TestCalculateTotal:

    def test_mixed_prices(self):
        q = _quotation(QuotationStatus.DRAFT, ("p1", 2, "10.50"), ("p2", 1, "25.00"))
        assert q.calculate_total() == Money.of("46.00")

    def test_empty_is_zero(self):
        q = Quotation(id="q1", customer_id="c1", line_items=[])
        assert q.calculate_total().amount == Decimal("0")


class TestSubmit:

    def test_draft_becomes_pending(self):
        q = _quotation(QuotationStatus.DRAFT)
        q.submit()
        assert q.status == QuotationStatus.PENDING
        assert q.updated_at is not None

    @pytest.mark.parametrize(
        "status", [QuotationStatus.PENDING, QuotationStatus.SOLD, QuotationStatus.CANCELLED]
    )
    def test_only_draft_can_be_submitted(self, status):
        q = _quotation(status)
        with pytest.raises(InvalidStateError, match="Only DRAFT"):
            q.submit()


class TestApprove:

    def test_reprices_and_freezes(self):
        q = _quotation(QuotationStatus.PENDING, ("p1", 2, "50.00"))
        q.approve({"p1": Money.of("55.00")})

        assert q.status == QuotationStatus.SOLD
        assert q.total_amount == Money.of("110.00")
        item = q.line_items[0]
        assert isinstance(item, FrozenLineItem)
        assert item.price_snapshot is True
        assert item.unit_price == Money.of("55.00")

    def test_missing_price_keeps_quoted_price(self):
        q = _quotation(QuotationStatus.PENDING, ("p1", 2, "50.00"), ("p2", 1, "10.00"))
        q.approve({"p2": Money.of("12.00")})
        assert q.line_items[0].unit_price == Money.of("50.00")
        assert q.line_items[1].unit_price == Money.of("12.00")
        assert q.total_amount == Money.of("112.00")

    def test_appends_approved_event_with_new_total(self):
        q = _quotation(QuotationStatus.PENDING, ("p1", 2, "50.00"))
        q.approve({"p1": Money.of("55.00")})
        event = q.event_log[-1]
        assert event.type == "QuotationApproved"
        assert event.total_amount == Money.of("110.00")

    def test_frozen_items_are_immutable(self):
        q = _quotation(QuotationStatus.PENDING)
        q.approve({})
        with pytest.raises(AttributeError):
            q.line_items[0].unit_price = Money.of("1.00")

    @pytest.mark.parametrize(
        "status", [QuotationStatus.DRAFT, QuotationStatus.SOLD, QuotationStatus.CANCELLED]
    )
    def test_non_pending_rejected(self, status):
        q = _quotation(status)
        with pytest.raises(InvalidStateError, match="Only PENDING quotations can be approved"):
            q.approve({"p1": Money.of("1.00")})
        assert q.status == status

    def test_prices_never_change_after_sold(self):
        q = _quotation(QuotationStatus.PENDING, ("p1", 2, "50.00"))
        q.approve({"p1": Money.of("55.00")})
        with pytest.raises(InvalidStateError):
            q.approve({"p1": Money.of("99.00")})
        assert q.line_items[0].unit_price == Money.of("55.00")
        assert q.total_amount == Money.of("110.00")


class TestCancel:

    @pytest.mark.parametrize("status", [QuotationStatus.DRAFT, QuotationStatus.PENDING])
    def test_cancel_from_open_states(self, status):
        q = _quotation(status)
        q.cancel()
        assert q.status == QuotationStatus.CANCELLED
        assert q.event_log[-1].type == "QuotationCancelled"

    def test_cancel_sold_rejected(self):
        q = _quotation(QuotationStatus.SOLD)
        with pytest.raises(InvalidStateError, match="SOLD"):
            q.cancel()

    def test_cancel_twice_is_a_no_op(self):
        q = _quotation(QuotationStatus.DRAFT)
        q.cancel()
        q.cancel()
        assert q.status == QuotationStatus.CANCELLED
        assert [e.type for e in q.event_log] == ["QuotationCancelled"]
