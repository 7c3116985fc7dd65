"""Fulfillment worker — renders an order document and delivers it to the factory.

One call to `handle` is one delivery attempt. The attempt is counted and
committed before any work starts; success and failure are each recorded in
their own unit of work afterwards. The worker never sleeps: the consumer
reschedules retryable outcomes with the task's backoff.
"""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from procurement.fulfillment.attempts import BeginDeliveryAttempt, CompleteDelivery, RecordDeliveryFailure
from procurement.fulfillment.delivery_job import DeliveryStatus
from procurement.fulfillment.order_graph import load_order_graph
from procurement.fulfillment.settings import get_settings
from procurement.fulfillment.tasks import FulfillmentTask, OutcomeStatus, TaskOutcome
from procurement.notifier import get_notifier
from procurement.rendering import get_renderer

logger = structlog.get_logger(__name__)


class DeliveryTimeout(Exception):
    """A rendering or notification step ran past its deadline."""

    def __init__(self, step: str, timeout: float):
        self.step = step
        self.timeout = timeout
        super().__init__(f"{step} timed out after {timeout}s")


def _call_with_timeout(step, timeout, func, *args, **kwargs):
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"fulfillment-{step}")
    try:
        future = executor.submit(func, *args, **kwargs)
        try:
            return future.result(timeout=timeout)
        except FutureTimeout as exc:
            future.cancel()
            raise DeliveryTimeout(step, timeout) from exc
    finally:
        # A stalled step is abandoned, not joined
        executor.shutdown(wait=False)


def _describe(exc) -> str:
    if isinstance(exc, ValidationError):
        return f"{type(exc).__name__}: {exc.messages}"
    return f"{type(exc).__name__}: {exc}"


class FulfillmentWorker:
    def __init__(self, renderer=None, notifier=None, settings=None):
        self._renderer = renderer
        self._notifier = notifier
        self.settings = settings or get_settings()

    @property
    def renderer(self):
        return self._renderer or get_renderer()

    @property
    def notifier(self):
        return self._notifier or get_notifier()

    def handle(self, task: FulfillmentTask) -> TaskOutcome:
        log = logger.bind(job_id=task.job_id, order_id=task.order_id, delivery=task.delivery)

        try:
            begin = current_domain.process(BeginDeliveryAttempt(job_id=task.job_id), asynchronous=False)
        except ObjectNotFoundError:
            log.error("Delivery job not found, dropping task")
            return TaskOutcome(status=OutcomeStatus.FAILED, error=f"Delivery job {task.job_id} not found")

        if not begin["started"]:
            if begin["status"] == DeliveryStatus.FAILED.value:
                return TaskOutcome(status=OutcomeStatus.FAILED, attempt=begin["attempt"])
            log.info("Delivery job already finished, skipping", status=begin["status"])
            return TaskOutcome(status=OutcomeStatus.SKIPPED, attempt=begin["attempt"])

        attempt = begin["attempt"]
        log = log.bind(attempt=attempt)
        log.info("Delivery attempt started")

        reference = None
        try:
            graph = load_order_graph(task.order_id)
            reference = _call_with_timeout(
                "render", self.settings.render_timeout_seconds, self.renderer.render, graph
            )
            document = self.renderer.read(reference)
            _call_with_timeout(
                "notify",
                self.settings.notify_timeout_seconds,
                self.notifier.send,
                recipients=begin["recipients"],
                subject=begin["subject"],
                order=graph,
                document_reference=reference,
                document=document,
                idempotency_key=begin["idempotency_key"],
            )
        except ObjectNotFoundError as exc:
            # Missing order or catalog data will not fix itself
            log.error("Order data missing, failing delivery", error=str(exc))
            return self._fail(task, attempt, reference, _describe(exc), terminal=True)
        except Exception as exc:
            log.warning("Delivery attempt failed", error=_describe(exc))
            return self._fail(task, attempt, reference, _describe(exc), terminal=False)

        try:
            current_domain.process(
                CompleteDelivery(job_id=task.job_id, document_reference=reference),
                asynchronous=False,
            )
        except (ValidationError, ObjectNotFoundError) as exc:
            log.error("Could not record delivered document", error=_describe(exc))
            return self._fail(task, attempt, reference, _describe(exc), terminal=True)

        log.info("Order document delivered", document_reference=reference)
        return TaskOutcome(status=OutcomeStatus.SUCCEEDED, attempt=attempt, document_reference=reference)

    def _fail(self, task, attempt, reference, error, terminal) -> TaskOutcome:
        if reference:
            self.renderer.discard(reference)

        result = current_domain.process(
            RecordDeliveryFailure(job_id=task.job_id, error=error, terminal=terminal),
            asynchronous=False,
        )
        if result["status"] == DeliveryStatus.FAILED.value:
            logger.error(
                "Delivery failed permanently",
                job_id=task.job_id,
                order_id=task.order_id,
                attempts=result["attempt"],
                error=error,
            )
            return TaskOutcome(status=OutcomeStatus.FAILED, attempt=result["attempt"], error=error)
        return TaskOutcome(status=OutcomeStatus.RETRY, attempt=result["attempt"], error=error)
