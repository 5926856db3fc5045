"""Deferred job queues (implement IJobQueue).

Jobs are enqueued as JSON envelopes {id, queue, name, data, options,
enqueuedAt}. The Redis queue RPUSHes them onto list "{prefix}:{queue}" for
out-of-process workers; the in-memory queue keeps them for inspection.
Neither waits for a job to run.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import redis.asyncio as redis

from app.core.config import get_settings
from app.infrastructure.exceptions import JobQueueUnavailableError
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedJob:
    """A job as handed to a queue."""

    id: str
    queue: str
    name: str
    data: dict[str, Any]
    options: dict[str, Any] = field(default_factory=dict)
    enqueued_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "queue": self.queue,
            "name": self.name,
            "data": self.data,
            "options": self.options,
            "enqueuedAt": self.enqueued_at,
        }


def _new_job(
    queue_name: str, job_name: str, data: dict[str, Any], options: dict[str, Any] | None
) -> QueuedJob:
    return QueuedJob(
        id=generate_cuid(),
        queue=queue_name,
        name=job_name,
        data=data,
        options=dict(options or {}),
        enqueued_at=utc_now().isoformat(),
    )


class InMemoryJobQueue:
    """Keeps enqueued jobs in process memory (single-process deployments and tests)."""

    def __init__(self) -> None:
        self.jobs: list[QueuedJob] = []

    async def add_job(
        self,
        queue_name: str,
        job_name: str,
        data: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> str:
        job = _new_job(queue_name, job_name, data, options)
        self.jobs.append(job)
        logger.debug("Queued %s/%s (%s)", queue_name, job_name, job.id)
        return job.id

    def jobs_for(self, queue_name: str) -> list[QueuedJob]:
        return [j for j in self.jobs if j.queue == queue_name]


class RedisJobQueue:
    """RPUSHes job envelopes onto per-queue Redis lists."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self.redis = redis_client
        self.settings = get_settings()
        self.queue_prefix = self.settings.redis_queue_prefix

    async def connect(self) -> None:
        """Open the Redis connection. Failure is logged; add_job then raises."""
        if self.redis is not None:
            return
        try:
            client = redis.Redis(
                host=self.settings.redis_host,
                port=self.settings.redis_port,
                db=self.settings.redis_db,
                password=self.settings.redis_password_value,
                decode_responses=True,
                socket_connect_timeout=5,
            )
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis job queue connection failed: %s", e)
            return
        self.redis = client
        logger.info("Redis job queue connected")

    async def disconnect(self) -> None:
        if self.redis:
            await self.redis.close()
            self.redis = None
            logger.info("Redis job queue disconnected")

    def _get_key(self, queue_name: str) -> str:
        return f"{self.queue_prefix}:{queue_name}"

    async def add_job(
        self,
        queue_name: str,
        job_name: str,
        data: dict[str, Any],
        options: dict[str, Any] | None = None,
    ) -> str:
        """Enqueue job; raise JobQueueUnavailableError when Redis is down."""
        if self.redis is None:
            raise JobQueueUnavailableError(queue_name, "not connected")
        job = _new_job(queue_name, job_name, data, options)
        try:
            await self.redis.rpush(self._get_key(queue_name), json.dumps(job.to_dict()))
        except (redis.ConnectionError, redis.TimeoutError) as e:
            raise JobQueueUnavailableError(queue_name, str(e)) from e
        logger.debug("Queued %s/%s (%s)", queue_name, job_name, job.id)
        return job.id

    async def queue_length(self, queue_name: str) -> int:
        if self.redis is None:
            return 0
        return await self.redis.llen(self._get_key(queue_name))
