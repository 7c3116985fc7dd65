"""Task queue port (abstract interface).

The fulfillment pipeline needs only a few guarantees from its queue: delayed
delivery, at most one live copy per idempotency key, and explicit ack/retry.
Adapters: InMemoryTaskQueue (dev/test, single process) and RedisTaskQueue
(production, shared by any number of worker processes).
"""

from abc import ABC, abstractmethod

from procurement.fulfillment.tasks import FulfillmentTask


class TaskQueue(ABC):
    @abstractmethod
    def enqueue(self, task: FulfillmentTask, delay: float = 0.0) -> bool:
        """Schedule a task `delay` seconds from now.

        Returns False, without enqueuing, when a task with the same
        idempotency key is already queued or in flight.
        """
        ...

    @abstractmethod
    def dequeue(self) -> FulfillmentTask | None:
        """Claim the next ready task, or return None when nothing is due."""
        ...

    @abstractmethod
    def ack(self, task: FulfillmentTask) -> None:
        """Finish a claimed task and release its idempotency key."""
        ...

    @abstractmethod
    def retry(self, task: FulfillmentTask, delay: float) -> None:
        """Put a claimed task back, due again after `delay` seconds."""
        ...

    @abstractmethod
    def requeue_stale(self, older_than: float) -> int:
        """Make claimed tasks due again if they were neither acked nor retried.

        A worker that dies mid-attempt leaves its task claimed. Claims older
        than `older_than` seconds are rescheduled for immediate delivery.
        Returns how many tasks were requeued.
        """
        ...

    @abstractmethod
    def pending_count(self) -> int:
        """Number of tasks queued, whether or not they are due yet."""
        ...
