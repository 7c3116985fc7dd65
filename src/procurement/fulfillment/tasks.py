"""Fulfillment task payloads, retry policy and worker outcomes."""

import json
from dataclasses import asdict, dataclass, replace
from enum import Enum

from procurement.fulfillment.settings import get_settings

SEND_ORDER_DOCUMENT = "send-order-document"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retries with exponential backoff: 5s, 10s, 20s... by default."""

    max_attempts: int = 3
    backoff_seconds: float = 5.0

    def delay_for(self, attempt: int) -> float:
        """Delay before the attempt that follows attempt number `attempt` (1-based)."""
        return self.backoff_seconds * (2 ** (max(attempt, 1) - 1))

    @classmethod
    def from_settings(cls, settings=None):
        settings = settings or get_settings()
        return cls(max_attempts=settings.max_attempts, backoff_seconds=settings.backoff_seconds)


@dataclass(frozen=True)
class FulfillmentTask:
    order_id: str
    job_id: str
    idempotency_key: str
    name: str = SEND_ORDER_DOCUMENT
    max_attempts: int = 3
    backoff_seconds: float = 5.0
    delivery: int = 1  # how many times the queue has handed this task out

    @classmethod
    def for_job(cls, job, policy=None):
        policy = policy or replace(RetryPolicy.from_settings(), max_attempts=job.max_attempts)
        return cls(
            order_id=str(job.order_id),
            job_id=str(job.id),
            idempotency_key=job.idempotency_key,
            max_attempts=policy.max_attempts,
            backoff_seconds=policy.backoff_seconds,
        )

    @property
    def policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, backoff_seconds=self.backoff_seconds)

    def next_delivery(self):
        return replace(self, delivery=self.delivery + 1)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, payload):
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        return cls(**json.loads(payload))


class OutcomeStatus(Enum):
    SUCCEEDED = "Succeeded"
    RETRY = "Retry"
    FAILED = "Failed"
    SKIPPED = "Skipped"


@dataclass(frozen=True)
class TaskOutcome:
    status: OutcomeStatus
    attempt: int = 0
    error: str | None = None
    document_reference: str | None = None

    @property
    def should_retry(self) -> bool:
        return self.status == OutcomeStatus.RETRY
