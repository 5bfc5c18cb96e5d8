"""Application services: verification service and queue worker."""

from merchant_verification.application.services.verification_service import (
    VerificationService,
)
from merchant_verification.application.services.verification_worker import (
    VerificationWorker,
)

__all__ = ["VerificationService", "VerificationWorker"]
