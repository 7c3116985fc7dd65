"""Product and ProductVariant aggregates.

A product belongs to the factory that makes it. Each variant is one
purchasable configuration (colour, size, ...) identified by a unique SKU;
orders and prices reference variants, never products directly.
"""

import json
from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String, Text

from procurement.domain import procurement


@procurement.aggregate
class Product:
    factory_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    category = String(max_length=100)
    created_at = DateTime()

    @classmethod
    def add(cls, factory_id, name, description=None, category=None):
        return cls(
            factory_id=factory_id,
            name=name,
            description=description,
            category=category,
            created_at=datetime.now(UTC),
        )


@procurement.aggregate
class ProductVariant:
    product_id = Identifier(required=True)
    sku = String(required=True, max_length=64, unique=True)
    name = String(required=True, max_length=255)
    attributes = Text()  # JSON: {"color": "red", "size": "M"}
    created_at = DateTime()

    @classmethod
    def add(cls, product_id, sku, name, attributes=None):
        return cls(
            product_id=product_id,
            sku=sku,
            name=name,
            attributes=json.dumps(attributes or {}),
            created_at=datetime.now(UTC),
        )

    def attribute_map(self) -> dict:
        return json.loads(self.attributes) if self.attributes else {}
