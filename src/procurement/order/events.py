"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from procurement.domain import procurement


@procurement.event(part_of="Order")
class OrderCreated:
    """A buyer drafted an order with prices captured from the price list."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    organization_id = Identifier(required=True)
    factory_id = Identifier(required=True)
    created_by = Identifier(required=True)
    total_amount = String(required=True)  # decimal string
    currency = String(required=True)
    item_count = Integer(required=True)
    created_at = DateTime(required=True)


@procurement.event(part_of="Order")
class OrderSubmitted:
    """The buyer committed to the purchase; delivery to the factory is pending."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    factory_id = Identifier(required=True)
    submitted_by = Identifier(required=True)
    submitted_at = DateTime(required=True)


@procurement.event(part_of="Order")
class OrderEmailed:
    """The order document reached the factory."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    document_reference = String(required=True)
    emailed_at = DateTime(required=True)
