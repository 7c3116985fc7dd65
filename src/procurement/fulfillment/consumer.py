"""Fulfillment consumer — pulls tasks off the queue and drives the worker.

Acks finished tasks and reschedules retryable ones with exponential backoff.
An unexpected worker crash is rescheduled too while the task still has
queue deliveries left; the job's own attempt counter stays authoritative.
"""

import threading

import structlog

from procurement.fulfillment.queue import get_queue
from procurement.fulfillment.tasks import OutcomeStatus, TaskOutcome
from procurement.fulfillment.worker import FulfillmentWorker
from procurement.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


class FulfillmentConsumer:
    def __init__(self, worker=None, queue=None, poll_interval: float = 1.0):
        self.worker = worker or FulfillmentWorker()
        self._queue = queue
        self.poll_interval = poll_interval

    @property
    def queue(self):
        return self._queue or get_queue()

    def run_once(self) -> TaskOutcome | None:
        """Process one due task. Returns None when nothing is due."""
        queue = self.queue
        task = queue.dequeue()
        if task is None:
            return None

        add_context(task_id=task.idempotency_key, order_id=task.order_id, job_id=task.job_id)
        try:
            try:
                outcome = self.worker.handle(task)
            except Exception as exc:
                logger.exception("Fulfillment worker crashed", delivery=task.delivery)
                outcome = TaskOutcome(status=OutcomeStatus.RETRY, error=f"{type(exc).__name__}: {exc}")
                if task.delivery >= task.max_attempts:
                    queue.ack(task)
                    return TaskOutcome(status=OutcomeStatus.FAILED, error=outcome.error)
                queue.retry(task, delay=task.policy.delay_for(task.delivery))
                return outcome

            if outcome.should_retry:
                delay = task.policy.delay_for(outcome.attempt)
                queue.retry(task, delay=delay)
                logger.info("Delivery rescheduled", attempt=outcome.attempt, delay=delay)
            else:
                queue.ack(task)
                logger.info("Task finished", status=outcome.status.value, attempt=outcome.attempt)
            return outcome
        finally:
            clear_context()

    def drain(self, max_tasks: int | None = None) -> list[TaskOutcome]:
        """Process tasks until none are due (or `max_tasks` have run)."""
        outcomes = []
        while max_tasks is None or len(outcomes) < max_tasks:
            outcome = self.run_once()
            if outcome is None:
                break
            outcomes.append(outcome)
        return outcomes

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Consume until `stop_event` is set."""
        stop_event = stop_event or threading.Event()
        logger.info("Fulfillment consumer started", poll_interval=self.poll_interval)
        while not stop_event.is_set():
            if self.run_once() is None:
                stop_event.wait(self.poll_interval)
        logger.info("Fulfillment consumer stopped")
