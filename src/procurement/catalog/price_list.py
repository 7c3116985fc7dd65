"""PriceList and Price aggregates.

A price list is a named set of per-variant prices scoped to one or more buyer
organizations. Prices are their own aggregate so the resolver can look them up
by (variant, price list) without loading whole lists.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from procurement.domain import procurement
from procurement.shared.money import format_amount, to_decimal


@procurement.aggregate
class PriceList:
    name = String(required=True, max_length=255)
    currency = String(max_length=3, default="USD")
    description = Text()
    organization_ids = Text()  # JSON: list of buyer organization ids
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def create(cls, name, currency="USD", description=None, organization_ids=None):
        return cls(
            name=name,
            currency=currency,
            description=description,
            organization_ids=json.dumps([str(org_id) for org_id in organization_ids or []]),
            is_active=True,
            created_at=datetime.now(UTC),
        )

    def scoped_organizations(self) -> list[str]:
        return json.loads(self.organization_ids) if self.organization_ids else []


@procurement.aggregate
class Price:
    price_list_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    amount = String(required=True, max_length=32)  # decimal string, e.g. "450.00"
    currency = String(max_length=3, default="USD")
    min_quantity = Integer(default=1, min_value=1)
    created_at = DateTime()

    @classmethod
    def create(cls, price_list_id, variant_id, amount, currency="USD", min_quantity=1):
        value = to_decimal(amount)
        if value < 0:
            raise ValidationError({"amount": ["Price amount cannot be negative"]})
        return cls(
            price_list_id=price_list_id,
            variant_id=variant_id,
            amount=format_amount(value),
            currency=currency,
            min_quantity=min_quantity,
            created_at=datetime.now(UTC),
        )
