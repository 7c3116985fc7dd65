"""Read model the worker hands to the renderer and notifier.

Loaded fresh for every attempt; nothing here is cached between attempts.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from procurement.catalog.organization import Factory, Organization
from procurement.catalog.price_list import PriceList
from procurement.catalog.product import Product, ProductVariant
from procurement.order.order import Order
from procurement.shared.exceptions import OrderNotFound, ReferenceNotFound
from procurement.shared.money import to_decimal


@dataclass(frozen=True)
class Party:
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None


@dataclass(frozen=True)
class OrderLine:
    sku: str
    product_name: str
    variant_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    notes: str | None = None


@dataclass(frozen=True)
class OrderGraph:
    order_id: str
    order_number: str
    status: str
    currency: str
    total_amount: Decimal
    created_at: datetime | None
    notes: str | None
    organization: Party
    factory: Party
    lines: tuple[OrderLine, ...]
    price_list_name: str | None = None

    @property
    def item_count(self) -> int:
        return len(self.lines)


def _get(aggregate_cls, identifier, entity_type):
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError as exc:
        raise ReferenceNotFound(entity_type, identifier) from exc


def load_order_graph(order_id) -> OrderGraph:
    """Load an order with its parties and line detail.

    Raises:
        OrderNotFound: the order does not exist.
        ReferenceNotFound: a record the order points at is gone.
    """
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound(order_id) from exc

    organization = _get(Organization, order.organization_id, "Organization")
    factory = _get(Factory, order.factory_id, "Factory")
    price_list = _get(PriceList, order.price_list_id, "PriceList") if order.price_list_id else None

    lines = []
    for item in order.items:
        variant = _get(ProductVariant, item.variant_id, "ProductVariant")
        product = _get(Product, variant.product_id, "Product")
        lines.append(
            OrderLine(
                sku=variant.sku,
                product_name=product.name,
                variant_name=variant.name,
                quantity=item.quantity,
                unit_price=to_decimal(item.unit_price),
                line_total=to_decimal(item.line_total),
                notes=item.notes,
            )
        )

    return OrderGraph(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        currency=order.currency,
        total_amount=to_decimal(order.total_amount),
        created_at=order.created_at,
        notes=order.notes,
        organization=Party(
            name=organization.name,
            email=organization.email,
            phone=organization.phone,
            address=organization.address,
        ),
        factory=Party(
            name=factory.name,
            email=factory.contact_email,
            phone=factory.contact_phone,
            address=factory.address,
        ),
        lines=tuple(lines),
        price_list_name=price_list.name if price_list else None,
    )
