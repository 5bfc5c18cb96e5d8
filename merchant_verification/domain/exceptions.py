"""Domain exceptions for the merchant verification pipeline.

Infrastructure failures (cache, queue, external authority) are exceptions;
a negative verification verdict is a normal result, never an exception.
The presentation layer maps these to HTTP responses in exception handlers.
"""

from typing import Any


class MerchantVerificationException(Exception):
    """Base exception for all merchant verification errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. merchant_id, job_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class CacheUnavailableException(MerchantVerificationException):
    """Raised when the result cache cannot be reached (transient)."""

    def __init__(self, operation: str, key: str) -> None:
        super().__init__(
            f"Result cache unavailable during {operation}",
            "CACHE_UNAVAILABLE",
            {"operation": operation, "key": key},
        )


class QueueUnavailableException(MerchantVerificationException):
    """Raised when the job queue cannot be reached (transient)."""

    def __init__(self, operation: str, reason: str | None = None) -> None:
        details: dict[str, Any] = {"operation": operation}
        if reason:
            details["reason"] = reason
        super().__init__(
            f"Job queue unavailable during {operation}",
            "QUEUE_UNAVAILABLE",
            details,
        )


class VerificationAuthorityException(MerchantVerificationException):
    """Raised when the external verification authority errors out or times out.

    Not a negative verdict: the outcome is unknown, so it is never cached and
    the job is retried.
    """

    def __init__(self, merchant_id: str, reason: str) -> None:
        super().__init__(
            f"Verification authority failed for merchant {merchant_id}",
            "VERIFICATION_AUTHORITY_ERROR",
            {"merchant_id": merchant_id, "reason": reason},
        )


class InvalidJobPayloadException(MerchantVerificationException):
    """Raised when a queued job payload cannot be decoded."""

    def __init__(self, job_id: str, reason: str) -> None:
        super().__init__(
            f"Invalid payload for job {job_id}",
            "INVALID_JOB_PAYLOAD",
            {"job_id": job_id, "reason": reason},
        )


class JobNotFoundException(MerchantVerificationException):
    """Raised when a requested verification job is not found."""

    def __init__(self, job_id: str) -> None:
        super().__init__(
            f"Verification job not found: {job_id}",
            "JOB_NOT_FOUND",
            {"job_id": job_id},
        )
