"""DeliveryJob aggregate (CQRS) — getting one order document to its factory.

Created when an order is submitted and mutated only by the fulfillment
worker, plus an explicit manual retry once the job has failed. Every attempt
is counted before it runs, so `attempts` never exceeds `max_attempts`.

State Machine:
    PENDING → PROCESSING → SENT
    PROCESSING → PENDING (retryable failure)
    PROCESSING → PROCESSING (resuming an attempt that crashed)
    {PENDING, PROCESSING} → FAILED
    FAILED → (manual retry) → PENDING
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from procurement.domain import procurement
from procurement.fulfillment.events import (
    DeliveryAttemptFailed,
    DeliveryAttemptStarted,
    DeliveryFailed,
    DeliveryJobCreated,
    DeliveryRetried,
    DeliverySucceeded,
)

_MAX_ERROR_LENGTH = 1000


class DeliveryStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SENT = "Sent"
    FAILED = "Failed"


_VALID_TRANSITIONS = {
    DeliveryStatus.PENDING: {DeliveryStatus.PROCESSING, DeliveryStatus.FAILED},
    DeliveryStatus.PROCESSING: {
        DeliveryStatus.PROCESSING,
        DeliveryStatus.PENDING,
        DeliveryStatus.SENT,
        DeliveryStatus.FAILED,
    },
    DeliveryStatus.SENT: set(),  # terminal
    DeliveryStatus.FAILED: {DeliveryStatus.PENDING},  # manual retry only
}

_FINISHED_STATUSES = {DeliveryStatus.SENT, DeliveryStatus.FAILED}


def idempotency_key_for(job_id) -> str:
    return f"order-delivery-{job_id}"


@procurement.aggregate
class DeliveryJob:
    order_id = Identifier(required=True)
    factory_id = Identifier(required=True)
    recipients = Text(required=True)  # JSON: list of email addresses
    subject = String(required=True, max_length=500)
    status = String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    attempts = Integer(default=0, min_value=0)
    max_attempts = Integer(default=3, min_value=1)
    last_error = String(max_length=_MAX_ERROR_LENGTH)
    idempotency_key = String(max_length=100)
    document_reference = String(max_length=1000)
    sent_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def attempts_cannot_exceed_max_attempts(self):
        if self.attempts is not None and self.max_attempts is not None and self.attempts > self.max_attempts:
            raise ValidationError({"attempts": ["Delivery attempts cannot exceed the maximum"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, order_id, factory_id, recipients, subject, max_attempts=3):
        now = datetime.now(UTC)
        job = cls(
            order_id=order_id,
            factory_id=factory_id,
            recipients=json.dumps(list(recipients)),
            subject=subject,
            status=DeliveryStatus.PENDING.value,
            attempts=0,
            max_attempts=max_attempts,
            created_at=now,
            updated_at=now,
        )
        job.idempotency_key = idempotency_key_for(job.id)

        job.raise_(
            DeliveryJobCreated(
                job_id=str(job.id),
                order_id=str(order_id),
                factory_id=str(factory_id),
                idempotency_key=job.idempotency_key,
                max_attempts=max_attempts,
                created_at=now,
            )
        )
        return job

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def recipient_list(self) -> list[str]:
        return json.loads(self.recipients) if self.recipients else []

    @property
    def is_finished(self) -> bool:
        return DeliveryStatus(self.status) in _FINISHED_STATUSES

    @property
    def attempts_exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = DeliveryStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def start_attempt(self):
        """Count a new attempt and move to Processing.

        A job left in Processing by a crashed worker is resumed as a fresh
        attempt.
        """
        self._assert_can_transition(DeliveryStatus.PROCESSING)
        if self.attempts_exhausted:
            raise ValidationError({"attempts": ["Delivery attempts exhausted"]})

        now = datetime.now(UTC)
        self.status = DeliveryStatus.PROCESSING.value
        self.attempts = self.attempts + 1
        self.updated_at = now

        self.raise_(
            DeliveryAttemptStarted(
                job_id=str(self.id),
                order_id=str(self.order_id),
                attempt=self.attempts,
                started_at=now,
            )
        )

    def mark_sent(self, document_reference, sent_at=None):
        self._assert_can_transition(DeliveryStatus.SENT)

        now = sent_at or datetime.now(UTC)
        self.status = DeliveryStatus.SENT.value
        self.document_reference = document_reference
        self.last_error = None
        self.sent_at = now
        self.updated_at = now

        self.raise_(
            DeliverySucceeded(
                job_id=str(self.id),
                order_id=str(self.order_id),
                attempt=self.attempts,
                document_reference=document_reference,
                sent_at=now,
            )
        )

    def record_failure(self, error, terminal=False):
        """Record a failed attempt.

        The job goes back to Pending while attempts remain, and to Failed
        once they are used up or when `terminal` is set.
        """
        error = (error or "Unknown delivery error")[:_MAX_ERROR_LENGTH]
        if terminal or self.attempts_exhausted:
            self.fail(error)
            return

        self._assert_can_transition(DeliveryStatus.PENDING)
        now = datetime.now(UTC)
        self.status = DeliveryStatus.PENDING.value
        self.last_error = error
        self.updated_at = now

        self.raise_(
            DeliveryAttemptFailed(
                job_id=str(self.id),
                order_id=str(self.order_id),
                attempt=self.attempts,
                max_attempts=self.max_attempts,
                error=error,
                failed_at=now,
            )
        )

    def fail(self, error):
        self._assert_can_transition(DeliveryStatus.FAILED)

        error = (error or "Unknown delivery error")[:_MAX_ERROR_LENGTH]
        now = datetime.now(UTC)
        self.status = DeliveryStatus.FAILED.value
        self.last_error = error
        self.updated_at = now

        self.raise_(
            DeliveryFailed(
                job_id=str(self.id),
                order_id=str(self.order_id),
                attempts=self.attempts,
                error=error,
                failed_at=now,
            )
        )

    def retry(self, retried_by=None):
        """Give a failed job a fresh attempt budget. Never called automatically."""
        if DeliveryStatus(self.status) != DeliveryStatus.FAILED:
            raise ValidationError({"status": ["Only failed deliveries can be retried"]})

        now = datetime.now(UTC)
        self.status = DeliveryStatus.PENDING.value
        self.attempts = 0
        self.updated_at = now

        self.raise_(
            DeliveryRetried(
                job_id=str(self.id),
                order_id=str(self.order_id),
                retried_by=str(retried_by) if retried_by else None,
                retried_at=now,
            )
        )
