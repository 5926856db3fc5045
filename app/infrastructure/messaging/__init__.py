"""Messaging: event bus (in-memory, Redis pub/sub) and deferred job queues.

Used for trigger dispatch, workflow lifecycle events and action side effects.
"""

from app.infrastructure.messaging.event_bus import InMemoryEventBus
from app.infrastructure.messaging.job_queue import (
    InMemoryJobQueue,
    QueuedJob,
    RedisJobQueue,
)
from app.infrastructure.messaging.redis_pubsub import RedisEventBus

__all__ = [
    "InMemoryEventBus",
    "InMemoryJobQueue",
    "QueuedJob",
    "RedisEventBus",
    "RedisJobQueue",
]
