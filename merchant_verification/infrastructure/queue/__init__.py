"""Job queue: durable verification job queue backends.

RedisJobQueue is shared across API and worker processes; InMemoryJobQueue
serves a single process. create_job_queue picks one from settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from merchant_verification.infrastructure.queue.memory_queue import InMemoryJobQueue
from merchant_verification.infrastructure.queue.redis_queue import RedisJobQueue
from merchant_verification.infrastructure.queue.retry_policy import RetryPolicy

if TYPE_CHECKING:
    from merchant_verification.core.config import Settings


def create_job_queue(settings: "Settings") -> RedisJobQueue | InMemoryJobQueue:
    """Create the job queue configured by settings.queue_backend.

    Raises:
        ValueError: Unknown backend.
    """
    backend = settings.queue_backend.lower()
    retry_policy = RetryPolicy.from_settings(settings)
    if backend == "redis":
        return RedisJobQueue(settings=settings, retry_policy=retry_policy)
    if backend == "memory":
        return InMemoryJobQueue(
            retry_policy=retry_policy,
            retention_seconds=settings.job_retention_seconds,
        )
    raise ValueError(f"Unknown queue backend: {backend}. Supported: 'redis', 'memory'")


__all__ = [
    "InMemoryJobQueue",
    "RedisJobQueue",
    "RetryPolicy",
    "create_job_queue",
]
