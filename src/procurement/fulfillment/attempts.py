"""Delivery attempt bookkeeping — commands the fulfillment worker issues.

Each command commits in its own unit of work, so an attempt is counted before
any rendering or sending starts and a crash mid-attempt still uses up budget.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from procurement.audit import recorder
from procurement.audit.audit_entry import AuditAction
from procurement.catalog.organization import Factory
from procurement.domain import procurement
from procurement.fulfillment.delivery_job import DeliveryJob, DeliveryStatus
from procurement.order.order import Order

logger = structlog.get_logger(__name__)


@procurement.command(part_of="DeliveryJob")
class BeginDeliveryAttempt:
    job_id = Identifier(required=True)


@procurement.command(part_of="DeliveryJob")
class CompleteDelivery:
    job_id = Identifier(required=True)
    document_reference = String(required=True, max_length=1000)


@procurement.command(part_of="DeliveryJob")
class RecordDeliveryFailure:
    job_id = Identifier(required=True)
    error = String(max_length=1000)
    terminal = Boolean(default=False)


def _order_number(order_id):
    try:
        return current_domain.repository_for(Order).get(order_id).order_number
    except ObjectNotFoundError:
        return None


def _record_delivery_failed(job):
    recorder.record(
        AuditAction.DELIVERY_FAILED,
        entity_type="DeliveryJob",
        entity_id=job.id,
        order_id=job.order_id,
        changes={
            "order_number": _order_number(job.order_id),
            "attempts": job.attempts,
            "max_attempts": job.max_attempts,
            "error": job.last_error,
        },
    )


@procurement.command_handler(part_of=DeliveryJob)
class DeliveryAttemptHandler:
    @handle(BeginDeliveryAttempt)
    def begin_attempt(self, command):
        """Start an attempt if the job still needs one.

        Returns a dict with `started`, `status`, `attempt` and, when started,
        the job's `recipients`, `subject` and `idempotency_key`.
        """
        repo = current_domain.repository_for(DeliveryJob)
        job = repo.get(command.job_id)

        if job.is_finished:
            logger.info("Delivery job already finished", job_id=str(job.id), status=job.status)
            return {"started": False, "status": job.status, "attempt": job.attempts}

        if job.attempts_exhausted:
            job.fail(job.last_error or "Delivery attempts exhausted")
            repo.add(job)
            _record_delivery_failed(job)
            logger.warning("Delivery job out of attempts", job_id=str(job.id), attempts=job.attempts)
            return {"started": False, "status": job.status, "attempt": job.attempts}

        if DeliveryStatus(job.status) == DeliveryStatus.PROCESSING:
            logger.warning("Resuming interrupted delivery attempt", job_id=str(job.id), attempts=job.attempts)

        job.start_attempt()
        repo.add(job)
        return {
            "started": True,
            "status": job.status,
            "attempt": job.attempts,
            "recipients": job.recipient_list(),
            "subject": job.subject,
            "idempotency_key": job.idempotency_key,
        }

    @handle(CompleteDelivery)
    def complete_delivery(self, command):
        job_repo = current_domain.repository_for(DeliveryJob)
        order_repo = current_domain.repository_for(Order)

        job = job_repo.get(command.job_id)
        order = order_repo.get(job.order_id)

        order.mark_emailed(command.document_reference)
        job.mark_sent(command.document_reference, sent_at=order.emailed_at)
        order_repo.add(order)
        job_repo.add(job)

        try:
            factory_name = current_domain.repository_for(Factory).get(job.factory_id).name
        except ObjectNotFoundError:
            factory_name = None

        recorder.record(
            AuditAction.EMAIL_SENT,
            entity_type="Order",
            entity_id=order.id,
            actor_id=order.created_by,
            order_id=order.id,
            changes={
                "order_number": order.order_number,
                "factory": factory_name,
                "sent_to": job.recipient_list(),
            },
        )
        return {"status": job.status, "attempt": job.attempts}

    @handle(RecordDeliveryFailure)
    def record_failure(self, command):
        repo = current_domain.repository_for(DeliveryJob)
        job = repo.get(command.job_id)

        job.record_failure(command.error, terminal=bool(command.terminal))
        repo.add(job)

        if DeliveryStatus(job.status) == DeliveryStatus.FAILED:
            _record_delivery_failed(job)
        return {"status": job.status, "attempt": job.attempts}
