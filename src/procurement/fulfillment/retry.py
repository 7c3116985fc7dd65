"""Manual delivery retry — command, handler and service.

Failed jobs are never retried automatically. An operator can give a failed
job a fresh attempt budget, after which a new task is enqueued.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from procurement.audit import recorder
from procurement.audit.audit_entry import AuditAction
from procurement.domain import procurement
from procurement.fulfillment.delivery_job import DeliveryJob
from procurement.fulfillment.dispatch import enqueue_delivery
from procurement.shared.exceptions import ReferenceNotFound

logger = structlog.get_logger(__name__)


@procurement.command(part_of="DeliveryJob")
class RetryDeliveryJob:
    """Request to retry a failed delivery job."""

    job_id = Identifier(required=True)
    retried_by = Identifier(required=True)


@procurement.command_handler(part_of=DeliveryJob)
class RetryDeliveryJobHandler:
    @handle(RetryDeliveryJob)
    def retry_delivery_job(self, command):
        repo = current_domain.repository_for(DeliveryJob)
        try:
            job = repo.get(command.job_id)
        except ObjectNotFoundError as exc:
            raise ReferenceNotFound("DeliveryJob", command.job_id) from exc

        previous_error = job.last_error
        job.retry(retried_by=command.retried_by)
        repo.add(job)

        recorder.record(
            AuditAction.RETRY_DELIVERY,
            entity_type="DeliveryJob",
            entity_id=job.id,
            actor_id=command.retried_by,
            order_id=job.order_id,
            changes={"status": job.status, "previous_error": previous_error},
        )
        return str(job.id)


def retry_delivery(job_id, retried_by, queue=None) -> DeliveryJob:
    """Reset a failed job and enqueue a new delivery task for it."""
    current_domain.process(RetryDeliveryJob(job_id=job_id, retried_by=retried_by), asynchronous=False)
    job = current_domain.repository_for(DeliveryJob).get(job_id)
    enqueue_delivery(job, queue=queue)
    logger.info("Delivery retry requested", job_id=str(job.id), order_id=str(job.order_id))
    return job
