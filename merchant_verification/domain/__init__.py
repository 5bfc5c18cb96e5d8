"""Domain layer: entities, enums, and exceptions.

No dependencies on infrastructure or presentation.
"""

from merchant_verification.domain.entities import VerificationJob, VerificationResult
from merchant_verification.domain.enums import JobStatus
from merchant_verification.domain.exceptions import (
    CacheUnavailableException,
    InvalidJobPayloadException,
    JobNotFoundException,
    MerchantVerificationException,
    QueueUnavailableException,
    VerificationAuthorityException,
)

__all__ = [
    "VerificationJob",
    "VerificationResult",
    "JobStatus",
    "CacheUnavailableException",
    "InvalidJobPayloadException",
    "JobNotFoundException",
    "MerchantVerificationException",
    "QueueUnavailableException",
    "VerificationAuthorityException",
]
