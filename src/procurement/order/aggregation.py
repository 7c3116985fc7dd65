"""Order aggregation — turn requested items into priced lines.

Every variant and every price is resolved before anything is persisted, so a
single miss aborts the whole order.
"""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from procurement.catalog.price_list import PriceList
from procurement.catalog.product import ProductVariant
from procurement.pricing.resolver import resolve_price
from procurement.shared.exceptions import EmptyOrder, PriceUnavailable, ReferenceNotFound
from procurement.shared.money import line_total, sum_amounts

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RequestedItem:
    variant_id: str
    quantity: int
    notes: str | None = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            variant_id=str(data["variant_id"]),
            quantity=int(data["quantity"]),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class PricedLine:
    variant_id: str
    sku: str
    quantity: int
    unit_price: Decimal
    currency: str
    notes: str | None = None

    @property
    def line_total(self) -> Decimal:
        return line_total(self.unit_price, self.quantity)


@dataclass(frozen=True)
class PricedOrder:
    lines: tuple
    currency: str

    @property
    def total_amount(self) -> Decimal:
        return sum_amounts(line.line_total for line in self.lines)


def _load_price_list(price_list_id):
    try:
        return current_domain.repository_for(PriceList).get(price_list_id)
    except ObjectNotFoundError as exc:
        raise ReferenceNotFound("PriceList", price_list_id) from exc


def _load_variant(variant_id):
    try:
        return current_domain.repository_for(ProductVariant).get(variant_id)
    except ObjectNotFoundError as exc:
        raise ReferenceNotFound("ProductVariant", variant_id) from exc


def price_items(items, price_list_id=None, default_currency="USD") -> PricedOrder:
    """Resolve a unit price for every requested item.

    Raises:
        EmptyOrder: no items were requested.
        ValidationError: a quantity is below one, or prices span currencies.
        ReferenceNotFound: the price list or a variant does not exist.
        PriceUnavailable: a variant has no eligible price.
    """
    if not items:
        raise EmptyOrder()

    if price_list_id:
        _load_price_list(price_list_id)

    lines = []
    for item in items:
        if item.quantity < 1:
            raise ValidationError({"items": [f"Quantity must be at least 1 for variant {item.variant_id}"]})

        variant = _load_variant(item.variant_id)
        price = resolve_price(item.variant_id, price_list_id)
        if price is None:
            logger.warning(
                "Order aborted: unpriced variant",
                variant_id=item.variant_id,
                sku=variant.sku,
                price_list_id=str(price_list_id) if price_list_id else None,
            )
            raise PriceUnavailable(item.variant_id, label=variant.sku)

        lines.append(
            PricedLine(
                variant_id=item.variant_id,
                sku=variant.sku,
                quantity=item.quantity,
                unit_price=price.amount,
                currency=price.currency,
                notes=item.notes,
            )
        )

    currencies = {line.currency for line in lines}
    if len(currencies) > 1:
        raise ValidationError({"items": [f"Prices span multiple currencies: {', '.join(sorted(currencies))}"]})

    currency = currencies.pop() if currencies else default_currency
    return PricedOrder(lines=tuple(lines), currency=currency)
