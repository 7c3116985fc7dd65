"""Order aggregate (CQRS) — a buyer organization's purchase from one factory.

Prices are captured on each line when the order is drafted and never change
afterward, even if the price list does. Delivery failures are tracked on the
DeliveryJob, so the buyer-visible status stays simple.

State Machine:
    DRAFT → SUBMITTED → EMAILED
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from procurement.domain import procurement
from procurement.order.events import OrderCreated, OrderEmailed, OrderSubmitted
from procurement.shared.exceptions import EmptyOrder, InvalidTransition
from procurement.shared.money import format_amount, line_total, sum_amounts, to_decimal


class OrderStatus(Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    EMAILED = "Emailed"


_VALID_TRANSITIONS = {
    OrderStatus.DRAFT: {OrderStatus.SUBMITTED},
    OrderStatus.SUBMITTED: {OrderStatus.EMAILED},
    OrderStatus.EMAILED: set(),  # Terminal
}


@procurement.entity(part_of="Order")
class OrderItem:
    """A priced line. `unit_price` and `line_total` are decimal strings."""

    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = String(required=True, max_length=32)
    line_total = String(required=True, max_length=32)
    notes = Text()


@procurement.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.DRAFT.value)
    organization_id = Identifier(required=True)
    created_by = Identifier(required=True)
    factory_id = Identifier(required=True)
    price_list_id = Identifier()
    currency = String(max_length=3, default="USD")
    total_amount = String(max_length=32, default="0.00")
    notes = Text()
    items = HasMany(OrderItem)
    document_reference = String(max_length=1000)
    created_at = DateTime()
    submitted_at = DateTime()
    emailed_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_sum_of_line_totals(self):
        if to_decimal(self.total_amount) != sum_amounts(item.line_total for item in self.items):
            raise ValidationError({"total_amount": ["Order total must equal the sum of its line totals"]})

    @invariant.post
    def line_totals_must_match_unit_price_and_quantity(self):
        for item in self.items:
            if to_decimal(item.line_total) != line_total(item.unit_price, item.quantity):
                raise ValidationError({"items": [f"Line total mismatch for variant {item.variant_id}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def draft(
        cls,
        order_number,
        organization_id,
        created_by,
        factory_id,
        lines,
        currency="USD",
        price_list_id=None,
        notes=None,
    ):
        """Create a Draft order from priced lines.

        Args:
            lines: iterable of objects with variant_id, quantity, unit_price
                (Decimal) and optional notes.
        """
        now = datetime.now(UTC)

        items = []
        for line in lines:
            unit_price = format_amount(line.unit_price)
            items.append(
                OrderItem(
                    variant_id=str(line.variant_id),
                    quantity=line.quantity,
                    unit_price=unit_price,
                    line_total=format_amount(line_total(unit_price, line.quantity)),
                    notes=line.notes,
                )
            )
        total = sum_amounts(item.line_total for item in items)

        order = cls(
            order_number=order_number,
            status=OrderStatus.DRAFT.value,
            organization_id=organization_id,
            created_by=created_by,
            factory_id=factory_id,
            price_list_id=price_list_id,
            currency=currency,
            total_amount=format_amount(total),
            notes=notes,
            items=items,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order_number,
                organization_id=str(organization_id),
                factory_id=str(factory_id),
                created_by=str(created_by),
                total_amount=order.total_amount,
                currency=currency,
                item_count=len(items),
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status, message=None):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current.value, target_status.value, message)

    def submit(self, submitted_by):
        """Commit the buyer to the purchase. Legal only from Draft with at least one item."""
        self._assert_can_transition(OrderStatus.SUBMITTED, "Order has already been submitted")
        if not self.items:
            raise EmptyOrder()

        now = datetime.now(UTC)
        self.status = OrderStatus.SUBMITTED.value
        self.submitted_at = now
        self.updated_at = now

        self.raise_(
            OrderSubmitted(
                order_id=str(self.id),
                order_number=self.order_number,
                factory_id=str(self.factory_id),
                submitted_by=str(submitted_by),
                submitted_at=now,
            )
        )

    def mark_emailed(self, document_reference, emailed_at=None):
        """Record confirmed delivery of the order document to the factory."""
        self._assert_can_transition(OrderStatus.EMAILED)

        now = emailed_at or datetime.now(UTC)
        self.status = OrderStatus.EMAILED.value
        self.document_reference = document_reference
        self.emailed_at = now
        self.updated_at = now

        self.raise_(
            OrderEmailed(
                order_id=str(self.id),
                order_number=self.order_number,
                document_reference=document_reference,
                emailed_at=now,
            )
        )
