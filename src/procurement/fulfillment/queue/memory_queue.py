"""In-memory task queue for development and tests.

Thread-safe within one process. Tasks are held in a heap ordered by the time
they become due; the clock is injectable so tests can fast-forward through
backoff delays.
"""

import heapq
import itertools
import threading
import time

from procurement.fulfillment.queue.port import TaskQueue
from procurement.fulfillment.tasks import FulfillmentTask


class InMemoryTaskQueue(TaskQueue):
    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._heap: list[tuple[float, int, FulfillmentTask]] = []
        self._keys: set[str] = set()  # queued or in flight
        self._inflight: dict[str, tuple[float, FulfillmentTask]] = {}
        self._counter = itertools.count()
        self._lock = threading.Lock()
        self.acked: list[FulfillmentTask] = []

    def enqueue(self, task: FulfillmentTask, delay: float = 0.0) -> bool:
        with self._lock:
            if task.idempotency_key in self._keys:
                return False
            self._keys.add(task.idempotency_key)
            self._push(task, delay)
            return True

    def dequeue(self) -> FulfillmentTask | None:
        with self._lock:
            if not self._heap or self._heap[0][0] > self._clock():
                return None
            _, _, task = heapq.heappop(self._heap)
            self._inflight[task.idempotency_key] = (self._clock(), task)
            return task

    def ack(self, task: FulfillmentTask) -> None:
        with self._lock:
            self._inflight.pop(task.idempotency_key, None)
            self._keys.discard(task.idempotency_key)
            self.acked.append(task)

    def retry(self, task: FulfillmentTask, delay: float) -> None:
        with self._lock:
            self._inflight.pop(task.idempotency_key, None)
            self._keys.add(task.idempotency_key)
            self._push(task.next_delivery(), delay)

    def requeue_stale(self, older_than: float) -> int:
        with self._lock:
            cutoff = self._clock() - older_than
            stale = [key for key, (claimed_at, _) in self._inflight.items() if claimed_at <= cutoff]
            for key in stale:
                _, task = self._inflight.pop(key)
                self._push(task.next_delivery(), 0.0)
            return len(stale)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._heap)

    def next_due_in(self) -> float | None:
        """Seconds until the earliest queued task is due (0 when one is ready)."""
        with self._lock:
            if not self._heap:
                return None
            return max(self._heap[0][0] - self._clock(), 0.0)

    def clear(self) -> None:
        with self._lock:
            self._heap.clear()
            self._keys.clear()
            self._inflight.clear()
            self.acked.clear()

    def _push(self, task, delay):
        heapq.heappush(self._heap, (self._clock() + max(delay, 0.0), next(self._counter), task))
