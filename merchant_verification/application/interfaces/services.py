"""Service interfaces (ports) for the application layer.

Protocols define the contracts the verification service and worker depend
on. Implementations live in merchant_verification.infrastructure and are
built by factories at process startup.
"""

from __future__ import annotations

from typing import Any, Protocol

from merchant_verification.domain.entities import VerificationJob
from merchant_verification.domain.enums import JobStatus


# Result cache: merchant_id -> verification outcome with TTL
class IResultCache(Protocol):
    """Protocol for the verification result cache (shared, cross-process)."""

    async def get(self, merchant_id: str) -> bool | None:
        """Return the cached outcome, or None when absent or expired."""

    async def set(self, merchant_id: str, outcome: bool, ttl: int | None = None) -> None:
        """Store outcome, overwriting any prior entry; expiry starts now."""

    async def delete(self, merchant_id: str) -> None:
        """Invalidate the cached outcome for merchant_id."""


# External verification authority
class IVerificationAuthority(Protocol):
    """Protocol for the external authority that decides whether a merchant is verified."""

    async def check(self, merchant_id: str) -> bool:
        """Return the verdict. Raise VerificationAuthorityException when no verdict was obtained."""


# Notification sink (push/email/webhook)
class INotificationSink(Protocol):
    """Protocol for delivering a message about a merchant out-of-band."""

    async def notify(self, merchant_id: str, message: str) -> None:
        """Deliver message for merchant_id. Fire-and-forget from the pipeline's view."""


# Durable job queue with leases
class IJobQueue(Protocol):
    """Protocol for the at-least-once verification job queue."""

    async def enqueue(self, merchant_id: str) -> VerificationJob:
        """Store a new job as queued and return it."""

    async def dequeue(self, lease_seconds: int) -> VerificationJob | None:
        """Claim one job for lease_seconds, or return None when nothing is ready."""

    async def ack(self, job: VerificationJob, result: dict[str, Any] | None = None) -> bool:
        """Mark the job completed. Returns False when the lease was lost."""

    async def fail(self, job: VerificationJob, error: str) -> JobStatus | None:
        """Record a failed attempt; return retry_scheduled, dead_letter, or None if the lease was lost."""

    async def get(self, job_id: str) -> VerificationJob | None:
        """Return the job record or None if unknown (or expired)."""

    async def stats(self) -> dict[str, int]:
        """Return counts of pending, in-flight, delayed and dead-lettered jobs."""
