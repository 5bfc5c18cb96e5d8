"""In-memory verification job queue for a single process.

Mirrors RedisJobQueue semantics (FIFO claims, leases, lease-expiry
re-delivery, capped exponential retries, dead-lettering, lease-checked
ack/fail) so tests and local runs exercise the same state machine.
Completed records are dropped after retention_seconds, like the Redis
EXPIRE on acked job hashes. Nothing survives a restart.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import time
import uuid
from collections import deque
from collections.abc import Callable
from typing import Any

from merchant_verification.domain.entities import VerificationJob
from merchant_verification.domain.enums import JobStatus
from merchant_verification.infrastructure.queue.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)


class InMemoryJobQueue:
    """Asyncio-safe job queue kept in process memory.

    Args:
        retry_policy: Retry budget and backoff; defaults to RetryPolicy().
        retention_seconds: How long a completed job stays readable via get().
        clock: Wall-clock time source in seconds; tests pass a fake clock.
    """

    def __init__(
        self,
        retry_policy: RetryPolicy | None = None,
        retention_seconds: int = 86_400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.retry_policy = retry_policy or RetryPolicy()
        self.retention_seconds = retention_seconds
        self._clock = clock
        self._jobs: dict[str, VerificationJob] = {}
        self._pending: deque[str] = deque()
        self._inflight: dict[str, float] = {}
        self._delayed: dict[str, float] = {}
        self._dead: list[str] = []
        self._expires: dict[str, float] = {}
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def enqueue(self, merchant_id: str) -> VerificationJob:
        now = self._clock()
        job = VerificationJob(
            job_id=str(uuid.uuid4()),
            merchant_id=merchant_id,
            status=JobStatus.QUEUED,
            max_attempts=self.retry_policy.max_attempts,
            enqueued_at=now,
            updated_at=now,
        )
        async with self._lock:
            self._jobs[job.job_id] = job
            self._pending.append(job.job_id)
        logger.info("Enqueued verification job %s for merchant %s", job.job_id, merchant_id)
        return copy.copy(job)

    def _promote(self, now: float) -> None:
        """Move due retries to pending and reclaim expired leases. Caller holds the lock."""
        self._purge_completed(now)
        for job_id, due_at in sorted(self._delayed.items(), key=lambda item: item[1]):
            if due_at <= now:
                del self._delayed[job_id]
                job = self._jobs[job_id]
                job.status = JobStatus.QUEUED
                job.updated_at = now
                self._pending.append(job_id)
        for job_id, deadline in list(self._inflight.items()):
            if deadline > now:
                continue
            del self._inflight[job_id]
            job = self._jobs[job_id]
            job.lease_id = None
            job.lease_expires_at = None
            job.updated_at = now
            if not self.retry_policy.should_retry(job.attempts):
                job.status = JobStatus.DEAD_LETTER
                job.last_error = "lease expired"
                self._dead.append(job_id)
                logger.warning("Job %s dead-lettered after lease expiry", job_id)
            else:
                job.status = JobStatus.QUEUED
                self._pending.appendleft(job_id)
                logger.info("Lease expired for job %s; re-queued", job_id)

    async def dequeue(self, lease_seconds: int) -> VerificationJob | None:
        async with self._lock:
            now = self._clock()
            self._promote(now)
            if not self._pending:
                return None
            job_id = self._pending.popleft()
            job = self._jobs[job_id]
            job.attempts += 1
            job.status = JobStatus.IN_FLIGHT
            job.lease_id = uuid.uuid4().hex
            job.lease_expires_at = now + lease_seconds
            job.updated_at = now
            self._inflight[job_id] = job.lease_expires_at
            return copy.copy(job)

    def _purge_completed(self, now: float) -> None:
        for job_id, expires_at in list(self._expires.items()):
            if expires_at <= now:
                del self._expires[job_id]
                self._jobs.pop(job_id, None)

    def _holds_lease(self, job: VerificationJob) -> VerificationJob | None:
        stored = self._jobs.get(job.job_id)
        if stored is None or stored.lease_id is None or stored.lease_id != job.lease_id:
            return None
        return stored

    async def ack(self, job: VerificationJob, result: dict[str, Any] | None = None) -> bool:
        async with self._lock:
            stored = self._holds_lease(job)
            if stored is None:
                logger.warning("Lease lost before ack for job %s (merchant %s)", job.job_id, job.merchant_id)
                return False
            self._inflight.pop(job.job_id, None)
            stored.status = JobStatus.COMPLETED
            stored.result = result or {}
            stored.lease_id = None
            stored.lease_expires_at = None
            stored.updated_at = self._clock()
            self._expires[job.job_id] = stored.updated_at + self.retention_seconds
        job.status = JobStatus.COMPLETED
        job.result = result
        return True

    async def fail(self, job: VerificationJob, error: str) -> JobStatus | None:
        async with self._lock:
            stored = self._holds_lease(job)
            if stored is None:
                logger.warning("Lease lost before fail for job %s (merchant %s)", job.job_id, job.merchant_id)
                return None
            now = self._clock()
            self._inflight.pop(job.job_id, None)
            stored.lease_id = None
            stored.lease_expires_at = None
            stored.last_error = error
            stored.updated_at = now
            if not self.retry_policy.should_retry(stored.attempts):
                stored.status = JobStatus.DEAD_LETTER
                self._dead.append(job.job_id)
            else:
                stored.status = JobStatus.RETRY_SCHEDULED
                self._delayed[job.job_id] = now + self.retry_policy.delay_for(stored.attempts)
            status = stored.status
        job.status = status
        job.last_error = error
        return status

    async def get(self, job_id: str) -> VerificationJob | None:
        async with self._lock:
            self._purge_completed(self._clock())
            job = self._jobs.get(job_id)
            return copy.copy(job) if job else None

    async def stats(self) -> dict[str, int]:
        async with self._lock:
            return {
                "pending": len(self._pending),
                "in_flight": len(self._inflight),
                "delayed": len(self._delayed),
                "dead_letter": len(self._dead),
            }

    async def dead_letters(self) -> list[VerificationJob]:
        """Return dead-lettered jobs, oldest first (inspection)."""
        async with self._lock:
            return [copy.copy(self._jobs[job_id]) for job_id in self._dead]
