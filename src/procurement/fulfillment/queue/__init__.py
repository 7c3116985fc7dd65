"""Fulfillment task queue factory.

Provides get_queue() / set_queue() to swap implementations:
- InMemoryTaskQueue when TASK_QUEUE_URL is unset (development and testing)
- RedisTaskQueue when TASK_QUEUE_URL is a redis:// URL (production)
"""

import os

from procurement.fulfillment.queue.memory_queue import InMemoryTaskQueue
from procurement.fulfillment.queue.port import TaskQueue
from procurement.fulfillment.queue.redis_queue import RedisTaskQueue

_current_queue: TaskQueue | None = None


def get_queue() -> TaskQueue:
    """Return the current task queue, building it from TASK_QUEUE_URL on first use."""
    global _current_queue
    if _current_queue is None:
        url = os.environ.get("TASK_QUEUE_URL")
        if url and url.startswith(("redis://", "rediss://")):
            _current_queue = RedisTaskQueue(url=url)
        else:
            _current_queue = InMemoryTaskQueue()
    return _current_queue


def set_queue(queue: TaskQueue) -> None:
    """Override the active task queue (useful for tests)."""
    global _current_queue
    _current_queue = queue


def reset_queue() -> None:
    """Reset to the default queue."""
    global _current_queue
    _current_queue = None
