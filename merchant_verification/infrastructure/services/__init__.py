"""Infrastructure services: notification sinks."""

from merchant_verification.infrastructure.services.notification_service import (
    LogOnlyNotificationSink,
    WebhookNotificationSink,
    create_notification_sink,
)

__all__ = [
    "LogOnlyNotificationSink",
    "WebhookNotificationSink",
    "create_notification_sink",
]
