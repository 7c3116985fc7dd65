"""Price resolution — the unit price a variant sells for on a price list."""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from protean.utils.globals import current_domain

from procurement.catalog.price_list import Price
from procurement.shared.money import to_decimal

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolvedPrice:
    variant_id: str
    amount: Decimal
    currency: str
    min_quantity: int
    price_list_id: str


def resolve_price(variant_id, price_list_id=None) -> ResolvedPrice | None:
    """Return the applicable price for a variant, or None when there is none.

    With a price list only prices on that list are eligible. Without one the
    first persisted price for the variant is used; production callers should
    always pass a price list so the answer is unambiguous.
    """
    criteria = {"variant_id": str(variant_id)}
    if price_list_id:
        criteria["price_list_id"] = str(price_list_id)

    prices = (
        current_domain.repository_for(Price)._dao.query.filter(**criteria).order_by("created_at").limit(1).all().items
    )
    if not prices:
        logger.info(
            "No price found for variant",
            variant_id=str(variant_id),
            price_list_id=str(price_list_id) if price_list_id else None,
        )
        return None

    price = prices[0]
    return ResolvedPrice(
        variant_id=str(price.variant_id),
        amount=to_decimal(price.amount),
        currency=price.currency,
        min_quantity=price.min_quantity or 1,
        price_list_id=str(price.price_list_id),
    )
