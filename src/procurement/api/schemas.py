"""Pydantic request/response schemas for the procurement API.

These are external contracts, separate from the internal Protean commands.
Monetary amounts travel as decimals and serialize as strings.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Order requests
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    variant_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    notes: str | None = None


class CreateOrderRequest(BaseModel):
    factory_id: str = Field(min_length=1)
    price_list_id: str | None = None
    items: list[OrderItemRequest]
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "factory_id": "factory-001",
                    "price_list_id": "price-list-001",
                    "items": [{"variant_id": "variant-001", "quantity": 3}],
                    "notes": "Deliver before the end of the month",
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Order responses
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    id: str
    variant_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    notes: str | None = None


class DeliveryJobResponse(BaseModel):
    id: str
    order_id: str
    status: str
    recipients: list[str]
    subject: str
    attempts: int
    max_attempts: int
    last_error: str | None = None
    sent_at: datetime | None = None
    updated_at: datetime | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    status: str
    organization_id: str
    created_by: str
    factory_id: str
    price_list_id: str | None = None
    currency: str
    total_amount: Decimal
    notes: str | None = None
    document_reference: str | None = None
    created_at: datetime | None = None
    submitted_at: datetime | None = None
    emailed_at: datetime | None = None
    items: list[OrderItemResponse] = []
    delivery: DeliveryJobResponse | None = None


class OrderSummaryResponse(BaseModel):
    id: str
    order_number: str
    status: str
    factory_id: str
    total_amount: Decimal
    currency: str
    created_at: datetime | None = None


class OrderListResponse(BaseModel):
    items: list[OrderSummaryResponse]
    total: int
    skip: int
    take: int


class SubmitOrderResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    job_id: str


class AuditEntryResponse(BaseModel):
    id: str
    action: str
    entity_type: str
    entity_id: str
    actor_id: str | None = None
    changes: dict
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Catalog requests
# ---------------------------------------------------------------------------
class RegisterOrganizationRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class RegisterFactoryRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact_email: str = Field(min_length=3, max_length=255)
    contact_phone: str | None = None
    address: str | None = None


class AddProductRequest(BaseModel):
    factory_id: str
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: str | None = None


class AddProductVariantRequest(BaseModel):
    product_id: str
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    attributes: dict[str, str] = {}


class CreatePriceListRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    description: str | None = None
    organization_ids: list[str] = []


class SetPriceRequest(BaseModel):
    price_list_id: str
    variant_id: str
    amount: Decimal = Field(ge=0, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    min_quantity: int = Field(default=1, ge=1)


class IdResponse(BaseModel):
    id: str
