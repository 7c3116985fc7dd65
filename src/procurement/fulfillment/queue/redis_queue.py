"""Redis-backed task queue.

Layout under a key prefix:
    <prefix>:scheduled  sorted set, member = idempotency key, score = due time
    <prefix>:payloads   hash, idempotency key → task JSON
    <prefix>:inflight   hash, idempotency key → claim time

A task is claimed by whichever worker removes it from the sorted set first,
so many worker processes can share one queue. Claims that are never acked
or retried are put back by `requeue_stale`.
"""

import time

import redis
import structlog

from procurement.fulfillment.queue.port import TaskQueue
from procurement.fulfillment.tasks import FulfillmentTask

logger = structlog.get_logger(__name__)

_CLAIM_BATCH = 10


class RedisTaskQueue(TaskQueue):
    def __init__(self, url: str = "redis://localhost:6379/0", prefix: str = "procurement:fulfillment", client=None):
        self._redis = client or redis.Redis.from_url(url)
        self._scheduled = f"{prefix}:scheduled"
        self._payloads = f"{prefix}:payloads"
        self._inflight = f"{prefix}:inflight"

    def enqueue(self, task: FulfillmentTask, delay: float = 0.0) -> bool:
        if not self._redis.hsetnx(self._payloads, task.idempotency_key, task.to_json()):
            return False
        self._redis.zadd(self._scheduled, {task.idempotency_key: time.time() + max(delay, 0.0)})
        return True

    def dequeue(self) -> FulfillmentTask | None:
        due = self._redis.zrangebyscore(self._scheduled, "-inf", time.time(), start=0, num=_CLAIM_BATCH)
        for key in due:
            # Another worker may have claimed it between the read and here
            if not self._redis.zrem(self._scheduled, key):
                continue
            payload = self._redis.hget(self._payloads, key)
            if payload is None:
                logger.warning("Dropping task with no payload", idempotency_key=key)
                continue
            self._redis.hset(self._inflight, key, time.time())
            return FulfillmentTask.from_json(payload)
        return None

    def ack(self, task: FulfillmentTask) -> None:
        pipe = self._redis.pipeline()
        pipe.hdel(self._payloads, task.idempotency_key)
        pipe.hdel(self._inflight, task.idempotency_key)
        pipe.execute()

    def retry(self, task: FulfillmentTask, delay: float) -> None:
        retried = task.next_delivery()
        pipe = self._redis.pipeline()
        pipe.hset(self._payloads, task.idempotency_key, retried.to_json())
        pipe.hdel(self._inflight, task.idempotency_key)
        pipe.zadd(self._scheduled, {task.idempotency_key: time.time() + max(delay, 0.0)})
        pipe.execute()

    def requeue_stale(self, older_than: float) -> int:
        cutoff = time.time() - older_than
        requeued = 0
        for key, claimed_at in self._redis.hgetall(self._inflight).items():
            if float(claimed_at) > cutoff:
                continue
            # Only the process that removes the claim puts the task back
            if not self._redis.hdel(self._inflight, key):
                continue
            payload = self._redis.hget(self._payloads, key)
            if payload is None:
                continue
            task = FulfillmentTask.from_json(payload).next_delivery()
            pipe = self._redis.pipeline()
            pipe.hset(self._payloads, key, task.to_json())
            pipe.zadd(self._scheduled, {key: time.time()})
            pipe.execute()
            logger.warning("Requeued stale in-flight task", idempotency_key=task.idempotency_key)
            requeued += 1
        return requeued

    def pending_count(self) -> int:
        return self._redis.zcard(self._scheduled)

    def ping(self) -> bool:
        return bool(self._redis.ping())
