"""Tests for the Order aggregate — drafting, totals and invariants."""

from decimal import Decimal

import pytest
from procurement.order.aggregation import PricedLine
from procurement.order.events import OrderCreated
from procurement.order.order import Order, OrderItem, OrderStatus
from protean.exceptions import ValidationError


def _line(variant_id="var-1", quantity=3, unit_price="450.00", notes=None):
    return PricedLine(
        variant_id=variant_id,
        sku=f"SKU-{variant_id}",
        quantity=quantity,
        unit_price=Decimal(unit_price),
        currency="USD",
        notes=notes,
    )


def _make_order(lines=None, **kwargs):
    defaults = {
        "order_number": "ORD-2026-00001",
        "organization_id": "org-001",
        "created_by": "user-001",
        "factory_id": "factory-001",
        "lines": [_line("var-1"), _line("var-2")] if lines is None else lines,
    }
    defaults.update(kwargs)
    return Order.draft(**defaults)


class TestOrderDraft:
    def test_new_order_is_draft(self):
        order = _make_order()
        assert order.status == OrderStatus.DRAFT.value

    def test_total_is_sum_of_line_totals(self):
        order = _make_order()
        assert order.total_amount == "2700.00"

    def test_line_prices_are_captured(self):
        order = _make_order(lines=[_line("var-1", quantity=2, unit_price="19.99", notes="gift wrap")])
        item = order.items[0]
        assert item.unit_price == "19.99"
        assert item.line_total == "39.98"
        assert item.notes == "gift wrap"

    def test_currency_defaults_to_usd(self):
        assert _make_order().currency == "USD"

    def test_raises_order_created(self):
        order = _make_order()
        events = [e for e in order._events if isinstance(e, OrderCreated)]
        assert len(events) == 1
        assert events[0].order_number == "ORD-2026-00001"
        assert events[0].total_amount == "2700.00"
        assert events[0].item_count == 2

    def test_draft_without_lines_has_zero_total(self):
        order = _make_order(lines=[])
        assert order.items == []
        assert order.total_amount == "0.00"


class TestOrderInvariants:
    def test_total_must_match_items(self):
        with pytest.raises(ValidationError) as exc:
            Order(
                order_number="ORD-2026-00009",
                organization_id="org-001",
                created_by="user-001",
                factory_id="factory-001",
                total_amount="10.00",
                items=[OrderItem(variant_id="var-1", quantity=1, unit_price="5.00", line_total="5.00")],
            )
        assert "total_amount" in exc.value.messages

    def test_line_total_must_match_price_and_quantity(self):
        with pytest.raises(ValidationError) as exc:
            Order(
                order_number="ORD-2026-00010",
                organization_id="org-001",
                created_by="user-001",
                factory_id="factory-001",
                total_amount="7.00",
                items=[OrderItem(variant_id="var-1", quantity=2, unit_price="5.00", line_total="7.00")],
            )
        assert "items" in exc.value.messages

    def test_item_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            OrderItem(variant_id="var-1", quantity=0, unit_price="5.00", line_total="0.00")
