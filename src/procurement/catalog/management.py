"""Catalog registration — commands and handlers.

Conventional glue that records the parties, products and prices the order
pipeline reads. Only creation is supported; catalog maintenance lives
elsewhere.
"""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from procurement.catalog.organization import Factory, Organization
from procurement.catalog.price_list import Price, PriceList
from procurement.catalog.product import Product, ProductVariant
from procurement.domain import procurement
from procurement.shared.exceptions import ReferenceNotFound


def _ensure_exists(aggregate_cls, identifier, entity_type):
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError as exc:
        raise ReferenceNotFound(entity_type, identifier) from exc


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@procurement.command(part_of="Organization")
class RegisterOrganization:
    name = String(required=True, max_length=255)
    email = String(max_length=255)
    phone = String(max_length=50)
    address = Text()


@procurement.command(part_of="Factory")
class RegisterFactory:
    name = String(required=True, max_length=255)
    contact_email = String(required=True, max_length=255)
    contact_phone = String(max_length=50)
    address = Text()


@procurement.command(part_of="Product")
class AddProduct:
    factory_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    category = String(max_length=100)


@procurement.command(part_of="ProductVariant")
class AddProductVariant:
    product_id = Identifier(required=True)
    sku = String(required=True, max_length=64)
    name = String(required=True, max_length=255)
    attributes = Text()  # JSON object


@procurement.command(part_of="PriceList")
class CreatePriceList:
    name = String(required=True, max_length=255)
    currency = String(max_length=3, default="USD")
    description = Text()
    organization_ids = Text()  # JSON: list of organization ids


@procurement.command(part_of="Price")
class SetPrice:
    price_list_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    amount = String(required=True, max_length=32)
    currency = String(max_length=3, default="USD")
    min_quantity = Integer(default=1, min_value=1)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------
@procurement.command_handler(part_of=Organization)
class OrganizationHandler:
    @handle(RegisterOrganization)
    def register_organization(self, command):
        organization = Organization.register(
            name=command.name,
            email=command.email,
            phone=command.phone,
            address=command.address,
        )
        current_domain.repository_for(Organization).add(organization)
        return str(organization.id)


@procurement.command_handler(part_of=Factory)
class FactoryHandler:
    @handle(RegisterFactory)
    def register_factory(self, command):
        factory = Factory.register(
            name=command.name,
            contact_email=command.contact_email,
            contact_phone=command.contact_phone,
            address=command.address,
        )
        current_domain.repository_for(Factory).add(factory)
        return str(factory.id)


@procurement.command_handler(part_of=Product)
class ProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        _ensure_exists(Factory, command.factory_id, "Factory")
        product = Product.add(
            factory_id=command.factory_id,
            name=command.name,
            description=command.description,
            category=command.category,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)


@procurement.command_handler(part_of=ProductVariant)
class ProductVariantHandler:
    @handle(AddProductVariant)
    def add_variant(self, command):
        _ensure_exists(Product, command.product_id, "Product")
        attributes = json.loads(command.attributes) if command.attributes else {}
        variant = ProductVariant.add(
            product_id=command.product_id,
            sku=command.sku,
            name=command.name,
            attributes=attributes,
        )
        current_domain.repository_for(ProductVariant).add(variant)
        return str(variant.id)


@procurement.command_handler(part_of=PriceList)
class PriceListHandler:
    @handle(CreatePriceList)
    def create_price_list(self, command):
        organization_ids = json.loads(command.organization_ids) if command.organization_ids else []
        for organization_id in organization_ids:
            _ensure_exists(Organization, organization_id, "Organization")

        price_list = PriceList.create(
            name=command.name,
            currency=command.currency or "USD",
            description=command.description,
            organization_ids=organization_ids,
        )
        current_domain.repository_for(PriceList).add(price_list)
        return str(price_list.id)


@procurement.command_handler(part_of=Price)
class PriceHandler:
    @handle(SetPrice)
    def set_price(self, command):
        _ensure_exists(PriceList, command.price_list_id, "PriceList")
        _ensure_exists(ProductVariant, command.variant_id, "ProductVariant")
        price = Price.create(
            price_list_id=command.price_list_id,
            variant_id=command.variant_id,
            amount=command.amount,
            currency=command.currency or "USD",
            min_quantity=command.min_quantity or 1,
        )
        current_domain.repository_for(Price).add(price)
        return str(price.id)
