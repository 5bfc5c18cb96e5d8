"""Retry budget and backoff for failed verification jobs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from merchant_verification.core.config import Settings


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retries with capped exponential backoff.

    attempts counts deliveries, including the first one. A job that has used
    max_attempts deliveries is dead-lettered instead of retried.
    """

    max_attempts: int = 5
    backoff_seconds: float = 5.0
    backoff_max_seconds: float = 300.0

    @classmethod
    def from_settings(cls, settings: "Settings") -> RetryPolicy:
        return cls(
            max_attempts=settings.job_max_attempts,
            backoff_seconds=settings.retry_backoff_seconds,
            backoff_max_seconds=settings.retry_backoff_max_seconds,
        )

    def should_retry(self, attempts: int) -> bool:
        return attempts < self.max_attempts

    def delay_for(self, attempts: int) -> float:
        """Seconds to wait before the next delivery after `attempts` failed deliveries."""
        exponent = max(attempts - 1, 0)
        return min(self.backoff_seconds * (2**exponent), self.backoff_max_seconds)
