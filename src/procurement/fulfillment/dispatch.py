"""Hand delivery jobs to the fulfillment queue."""

import structlog

from procurement.fulfillment.queue import get_queue
from procurement.fulfillment.tasks import FulfillmentTask

logger = structlog.get_logger(__name__)


def enqueue_delivery(job, queue=None, delay=0.0) -> bool:
    """Enqueue the task for a delivery job.

    Returns False when a task with the same idempotency key is already queued
    or in flight. Enqueue errors propagate; the reconciliation sweep picks up
    jobs whose task never made it onto the queue.
    """
    queue = queue or get_queue()
    task = FulfillmentTask.for_job(job)
    enqueued = queue.enqueue(task, delay=delay)

    logger.info(
        "Delivery task enqueued" if enqueued else "Delivery task already queued",
        job_id=task.job_id,
        order_id=task.order_id,
        idempotency_key=task.idempotency_key,
        delay=delay,
    )
    return enqueued
