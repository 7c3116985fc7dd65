"""Order submission — command, handler and the submit service.

Submitting moves the order to Submitted and creates its Pending delivery job
in one unit of work. The fulfillment task is enqueued only after that commit.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from procurement.audit import recorder
from procurement.audit.audit_entry import AuditAction
from procurement.catalog.organization import Factory
from procurement.domain import procurement
from procurement.fulfillment.delivery_job import DeliveryJob
from procurement.fulfillment.dispatch import enqueue_delivery
from procurement.fulfillment.settings import get_settings
from procurement.order.order import Order
from procurement.shared.exceptions import OrderNotFound, ReferenceNotFound

logger = structlog.get_logger(__name__)


@procurement.command(part_of="Order")
class SubmitOrder:
    order_id = Identifier(required=True)
    submitted_by = Identifier(required=True)


def delivery_subject(order_number) -> str:
    return f"New Order: {order_number}"


def create_delivery_job(order) -> DeliveryJob:
    """Build the Pending delivery job for a submitted order (not persisted)."""
    try:
        factory = current_domain.repository_for(Factory).get(order.factory_id)
    except ObjectNotFoundError as exc:
        raise ReferenceNotFound("Factory", order.factory_id) from exc

    return DeliveryJob.create(
        order_id=order.id,
        factory_id=order.factory_id,
        recipients=[factory.contact_email],
        subject=delivery_subject(order.order_number),
        max_attempts=get_settings().max_attempts,
    )


@procurement.command_handler(part_of=Order)
class SubmitOrderHandler:
    @handle(SubmitOrder)
    def submit_order(self, command):
        order_repo = current_domain.repository_for(Order)
        try:
            order = order_repo.get(command.order_id)
        except ObjectNotFoundError as exc:
            raise OrderNotFound(command.order_id) from exc

        order.submit(submitted_by=command.submitted_by)
        job = create_delivery_job(order)

        order_repo.add(order)
        current_domain.repository_for(DeliveryJob).add(job)

        recorder.record(
            AuditAction.SUBMIT_ORDER,
            entity_type="Order",
            entity_id=order.id,
            actor_id=command.submitted_by,
            order_id=order.id,
            changes={"order_number": order.order_number, "status": order.status},
        )
        return {"order_id": str(order.id), "order_number": order.order_number, "job_id": str(job.id)}


@dataclass(frozen=True)
class SubmissionReceipt:
    order_id: str
    order_number: str
    job_id: str
    enqueued: bool


def submit_order(order_id, submitted_by, queue=None) -> SubmissionReceipt:
    """Submit an order and hand its delivery to the fulfillment queue."""
    result = current_domain.process(
        SubmitOrder(order_id=order_id, submitted_by=submitted_by),
        asynchronous=False,
    )

    job = current_domain.repository_for(DeliveryJob).get(result["job_id"])
    enqueued = enqueue_delivery(job, queue=queue)

    logger.info(
        "Order submitted",
        order_id=result["order_id"],
        order_number=result["order_number"],
        job_id=result["job_id"],
    )
    return SubmissionReceipt(
        order_id=result["order_id"],
        order_number=result["order_number"],
        job_id=result["job_id"],
        enqueued=enqueued,
    )
