"""Reconciliation sweep for the gap between commit and enqueue.

Submission commits first and enqueues afterwards, so a crash in between can
leave a Submitted order whose task never reached the queue. The sweep finds
  - Submitted orders with no delivery job, and creates and enqueues one;
  - queue claims older than `stale_after` seconds that were never acked,
    left behind by a worker that died mid-attempt, and makes them due again;
  - Pending or Processing jobs untouched for `stale_after` seconds, and
    enqueues them again under the same idempotency key.
Re-enqueuing a job that is still queued is a no-op.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from procurement.domain import procurement
from procurement.fulfillment.delivery_job import DeliveryJob, DeliveryStatus
from procurement.fulfillment.dispatch import enqueue_delivery
from procurement.fulfillment.queue import get_queue
from procurement.fulfillment.settings import get_settings
from procurement.order.order import Order, OrderStatus
from procurement.order.submission import create_delivery_job

logger = structlog.get_logger(__name__)

_SWEEP_LIMIT = 500


@procurement.command(part_of="DeliveryJob")
class EnsureDeliveryJob:
    order_id = Identifier(required=True)


@procurement.command_handler(part_of=DeliveryJob)
class EnsureDeliveryJobHandler:
    @handle(EnsureDeliveryJob)
    def ensure_delivery_job(self, command):
        """Create the delivery job for a Submitted order that has none. Returns its id, or None."""
        order = current_domain.repository_for(Order).get(command.order_id)
        if OrderStatus(order.status) != OrderStatus.SUBMITTED or _jobs_for_order(order.id):
            return None

        job = create_delivery_job(order)
        current_domain.repository_for(DeliveryJob).add(job)
        return str(job.id)


def _jobs_for_order(order_id):
    return current_domain.repository_for(DeliveryJob)._dao.query.filter(order_id=str(order_id)).all().items


@dataclass
class ReconciliationReport:
    jobs_created: list[str] = field(default_factory=list)
    tasks_enqueued: list[str] = field(default_factory=list)
    tasks_recovered: int = 0


def _as_utc(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def reconcile_submitted_orders(stale_after: float | None = None, queue=None, now=None) -> ReconciliationReport:
    stale_after = get_settings().reconcile_stale_seconds if stale_after is None else stale_after
    cutoff = (now or datetime.now(UTC)) - timedelta(seconds=stale_after)
    queue = queue or get_queue()
    report = ReconciliationReport()

    report.tasks_recovered = queue.requeue_stale(stale_after)
    if report.tasks_recovered:
        logger.warning("Recovered abandoned queue claims", count=report.tasks_recovered)

    submitted = (
        current_domain.repository_for(Order)
        ._dao.query.filter(status=OrderStatus.SUBMITTED.value)
        .limit(_SWEEP_LIMIT)
        .all()
        .items
    )
    for order in submitted:
        if _jobs_for_order(order.id):
            continue
        job_id = current_domain.process(EnsureDeliveryJob(order_id=str(order.id)), asynchronous=False)
        if job_id is None:
            continue
        report.jobs_created.append(job_id)
        job = current_domain.repository_for(DeliveryJob).get(job_id)
        if enqueue_delivery(job, queue=queue):
            report.tasks_enqueued.append(job_id)
        logger.warning("Created missing delivery job", order_id=str(order.id), job_id=job_id)

    repo = current_domain.repository_for(DeliveryJob)
    for status in (DeliveryStatus.PENDING, DeliveryStatus.PROCESSING):
        jobs = repo._dao.query.filter(status=status.value).limit(_SWEEP_LIMIT).all().items
        for job in jobs:
            if str(job.id) in report.jobs_created:
                continue
            if _as_utc(job.updated_at) and _as_utc(job.updated_at) > cutoff:
                continue
            if enqueue_delivery(job, queue=queue):
                report.tasks_enqueued.append(str(job.id))
                logger.warning("Re-enqueued stale delivery job", job_id=str(job.id), status=job.status)

    return report
