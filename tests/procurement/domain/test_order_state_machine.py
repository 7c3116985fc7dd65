"""Tests for the Order state machine — Draft → Submitted → Emailed."""

from decimal import Decimal

import pytest
from procurement.order.aggregation import PricedLine
from procurement.order.events import OrderEmailed, OrderSubmitted
from procurement.order.order import Order, OrderStatus
from procurement.shared.exceptions import EmptyOrder, InvalidTransition


def _make_order(with_items=True):
    lines = []
    if with_items:
        lines = [
            PricedLine(
                variant_id="var-1", sku="SKU-1", quantity=1, unit_price=Decimal("100.00"), currency="USD"
            )
        ]
    return Order.draft(
        order_number="ORD-2026-00001",
        organization_id="org-001",
        created_by="user-001",
        factory_id="factory-001",
        lines=lines,
    )


def _submitted_order():
    order = _make_order()
    order.submit(submitted_by="user-001")
    return order


class TestSubmit:
    def test_draft_to_submitted(self):
        order = _submitted_order()
        assert order.status == OrderStatus.SUBMITTED.value
        assert order.submitted_at is not None

    def test_submit_raises_event(self):
        order = _submitted_order()
        events = [e for e in order._events if isinstance(e, OrderSubmitted)]
        assert len(events) == 1
        assert events[0].submitted_by == "user-001"

    def test_cannot_submit_twice(self):
        order = _submitted_order()
        with pytest.raises(InvalidTransition) as exc:
            order.submit(submitted_by="user-001")
        assert exc.value.messages["status"] == ["Order has already been submitted"]
        assert order.status == OrderStatus.SUBMITTED.value

    def test_cannot_submit_empty_order(self):
        order = _make_order(with_items=False)
        with pytest.raises(EmptyOrder) as exc:
            order.submit(submitted_by="user-001")
        assert exc.value.messages["items"] == ["Order must have at least one item"]
        assert order.status == OrderStatus.DRAFT.value


class TestMarkEmailed:
    def test_submitted_to_emailed(self):
        order = _submitted_order()
        order.mark_emailed("fake://documents/order.pdf")
        assert order.status == OrderStatus.EMAILED.value
        assert order.document_reference == "fake://documents/order.pdf"
        assert order.emailed_at is not None

    def test_mark_emailed_raises_event(self):
        order = _submitted_order()
        order.mark_emailed("fake://documents/order.pdf")
        events = [e for e in order._events if isinstance(e, OrderEmailed)]
        assert len(events) == 1

    def test_draft_cannot_be_emailed(self):
        order = _make_order()
        with pytest.raises(InvalidTransition):
            order.mark_emailed("fake://documents/order.pdf")
        assert order.status == OrderStatus.DRAFT.value


class TestNoRegression:
    def test_emailed_is_terminal(self):
        order = _submitted_order()
        order.mark_emailed("fake://documents/order.pdf")
        with pytest.raises(InvalidTransition):
            order.submit(submitted_by="user-001")
        with pytest.raises(InvalidTransition):
            order.mark_emailed("fake://documents/other.pdf")
        assert order.status == OrderStatus.EMAILED.value
        assert order.document_reference == "fake://documents/order.pdf"
