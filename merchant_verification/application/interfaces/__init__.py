"""Application ports (Protocols) implemented by the infrastructure layer."""

from merchant_verification.application.interfaces.services import (
    IJobQueue,
    INotificationSink,
    IResultCache,
    IVerificationAuthority,
)

__all__ = [
    "IJobQueue",
    "INotificationSink",
    "IResultCache",
    "IVerificationAuthority",
]
