"""FastAPI routes for the procurement API — orders, deliveries and catalog."""

import json

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from procurement.access.capabilities import Actor, Capability
from procurement.api.dependencies import require
from procurement.api.schemas import (
    AddProductRequest,
    AddProductVariantRequest,
    AuditEntryResponse,
    CreateOrderRequest,
    CreatePriceListRequest,
    DeliveryJobResponse,
    IdResponse,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
    OrderSummaryResponse,
    RegisterFactoryRequest,
    RegisterOrganizationRequest,
    SetPriceRequest,
    SubmitOrderResponse,
)
from procurement.audit.recorder import entries_for_order
from procurement.catalog.management import (
    AddProduct,
    AddProductVariant,
    CreatePriceList,
    RegisterFactory,
    RegisterOrganization,
    SetPrice,
)
from procurement.fulfillment.delivery_job import DeliveryJob
from procurement.fulfillment.retry import retry_delivery
from procurement.order.creation import CreateOrder
from procurement.order.order import Order
from procurement.order.submission import submit_order
from procurement.rendering import get_renderer
from procurement.shared.exceptions import OrderNotFound, ReferenceNotFound


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _load_visible_order(order_id, actor: Actor) -> Order:
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound(order_id) from exc
    # Orders outside the actor's view are reported as missing
    if not actor.can_see_order(order):
        raise OrderNotFound(order_id)
    return order


def _latest_job(order_id) -> DeliveryJob | None:
    jobs = (
        current_domain.repository_for(DeliveryJob)
        ._dao.query.filter(order_id=str(order_id))
        .order_by("-created_at")
        .limit(1)
        .all()
        .items
    )
    return jobs[0] if jobs else None


def _job_response(job: DeliveryJob) -> DeliveryJobResponse:
    return DeliveryJobResponse(
        id=str(job.id),
        order_id=str(job.order_id),
        status=job.status,
        recipients=job.recipient_list(),
        subject=job.subject,
        attempts=job.attempts,
        max_attempts=job.max_attempts,
        last_error=job.last_error,
        sent_at=job.sent_at,
        updated_at=job.updated_at,
    )


def _order_response(order: Order) -> OrderResponse:
    job = _latest_job(order.id)
    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        organization_id=str(order.organization_id),
        created_by=str(order.created_by),
        factory_id=str(order.factory_id),
        price_list_id=str(order.price_list_id) if order.price_list_id else None,
        currency=order.currency,
        total_amount=order.total_amount,
        notes=order.notes,
        document_reference=order.document_reference,
        created_at=order.created_at,
        submitted_at=order.submitted_at,
        emailed_at=order.emailed_at,
        items=[
            OrderItemResponse(
                id=str(item.id),
                variant_id=str(item.variant_id),
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total,
                notes=item.notes,
            )
            for item in order.items
        ],
        delivery=_job_response(job) if job else None,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(
    body: CreateOrderRequest,
    actor: Actor = Depends(require(Capability.CREATE_ORDER)),
) -> OrderResponse:
    command = CreateOrder(
        organization_id=actor.organization_id,
        created_by=actor.user_id,
        factory_id=body.factory_id,
        price_list_id=body.price_list_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        notes=body.notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _order_response(current_domain.repository_for(Order).get(order_id))


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    status: str | None = None,
    skip: int = Query(default=0, ge=0),
    take: int = Query(default=20, ge=1, le=100),
    actor: Actor = Depends(require(Capability.VIEW_ORDERS)),
) -> OrderListResponse:
    criteria = {}
    if status:
        criteria["status"] = status
    if not actor.can(Capability.VIEW_ALL_ORDERS):
        criteria["created_by"] = actor.user_id

    query = current_domain.repository_for(Order)._dao.query
    if criteria:
        query = query.filter(**criteria)
    result = query.order_by("-created_at").offset(skip).limit(take).all()

    return OrderListResponse(
        items=[
            OrderSummaryResponse(
                id=str(order.id),
                order_number=order.order_number,
                status=order.status,
                factory_id=str(order.factory_id),
                total_amount=order.total_amount,
                currency=order.currency,
                created_at=order.created_at,
            )
            for order in result.items
        ],
        total=result.total,
        skip=skip,
        take=take,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, actor: Actor = Depends(require(Capability.VIEW_ORDERS))) -> OrderResponse:
    return _order_response(_load_visible_order(order_id, actor))


@order_router.post("/{order_id}/submit", response_model=SubmitOrderResponse)
async def submit(order_id: str, actor: Actor = Depends(require(Capability.SUBMIT_ORDER))) -> SubmitOrderResponse:
    _load_visible_order(order_id, actor)
    receipt = submit_order(order_id, submitted_by=actor.user_id)
    order = current_domain.repository_for(Order).get(receipt.order_id)
    return SubmitOrderResponse(
        order_id=receipt.order_id,
        order_number=receipt.order_number,
        status=order.status,
        job_id=receipt.job_id,
    )


@order_router.get("/{order_id}/document")
async def get_order_document(order_id: str, actor: Actor = Depends(require(Capability.VIEW_ORDERS))) -> Response:
    order = _load_visible_order(order_id, actor)
    if not order.document_reference:
        raise HTTPException(status_code=404, detail="Order document not generated yet")
    try:
        content = get_renderer().read(order.document_reference)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Order document not found") from exc
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="order-{order.order_number}.pdf"'},
    )


@order_router.get("/{order_id}/audit", response_model=list[AuditEntryResponse])
async def get_order_audit(
    order_id: str, actor: Actor = Depends(require(Capability.VIEW_ORDERS))
) -> list[AuditEntryResponse]:
    order = _load_visible_order(order_id, actor)
    return [
        AuditEntryResponse(
            id=str(entry.id),
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=str(entry.entity_id),
            actor_id=str(entry.actor_id) if entry.actor_id else None,
            changes=entry.change_set(),
            created_at=entry.created_at,
        )
        for entry in entries_for_order(order.id)
    ]


# ---------------------------------------------------------------------------
# Delivery Router
# ---------------------------------------------------------------------------
delivery_router = APIRouter(prefix="/deliveries", tags=["deliveries"])


def _load_job(job_id) -> DeliveryJob:
    try:
        return current_domain.repository_for(DeliveryJob).get(job_id)
    except ObjectNotFoundError as exc:
        raise ReferenceNotFound("DeliveryJob", job_id) from exc


@delivery_router.get("/{job_id}", response_model=DeliveryJobResponse)
async def get_delivery(job_id: str, actor: Actor = Depends(require(Capability.VIEW_ORDERS))) -> DeliveryJobResponse:
    job = _load_job(job_id)
    _load_visible_order(job.order_id, actor)
    return _job_response(job)


@delivery_router.post("/{job_id}/retry", response_model=DeliveryJobResponse)
async def retry(job_id: str, actor: Actor = Depends(require(Capability.RETRY_DELIVERY))) -> DeliveryJobResponse:
    _load_job(job_id)
    return _job_response(retry_delivery(job_id, retried_by=actor.user_id))


# ---------------------------------------------------------------------------
# Catalog Router
# ---------------------------------------------------------------------------
catalog_router = APIRouter(
    prefix="/catalog",
    tags=["catalog"],
    dependencies=[Depends(require(Capability.MANAGE_CATALOG))],
)


@catalog_router.post("/organizations", status_code=201, response_model=IdResponse)
async def register_organization(body: RegisterOrganizationRequest) -> IdResponse:
    command = RegisterOrganization(name=body.name, email=body.email, phone=body.phone, address=body.address)
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@catalog_router.post("/factories", status_code=201, response_model=IdResponse)
async def register_factory(body: RegisterFactoryRequest) -> IdResponse:
    command = RegisterFactory(
        name=body.name,
        contact_email=body.contact_email,
        contact_phone=body.contact_phone,
        address=body.address,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@catalog_router.post("/products", status_code=201, response_model=IdResponse)
async def add_product(body: AddProductRequest) -> IdResponse:
    command = AddProduct(
        factory_id=body.factory_id,
        name=body.name,
        description=body.description,
        category=body.category,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@catalog_router.post("/variants", status_code=201, response_model=IdResponse)
async def add_variant(body: AddProductVariantRequest) -> IdResponse:
    command = AddProductVariant(
        product_id=body.product_id,
        sku=body.sku,
        name=body.name,
        attributes=json.dumps(body.attributes),
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@catalog_router.post("/price-lists", status_code=201, response_model=IdResponse)
async def create_price_list(body: CreatePriceListRequest) -> IdResponse:
    command = CreatePriceList(
        name=body.name,
        currency=body.currency,
        description=body.description,
        organization_ids=json.dumps(body.organization_ids),
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@catalog_router.post("/prices", status_code=201, response_model=IdResponse)
async def set_price(body: SetPriceRequest) -> IdResponse:
    command = SetPrice(
        price_list_id=body.price_list_id,
        variant_id=body.variant_id,
        amount=str(body.amount),
        currency=body.currency,
        min_quantity=body.min_quantity,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))
