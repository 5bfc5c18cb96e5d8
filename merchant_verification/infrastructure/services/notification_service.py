"""Merchant notifications: log-only sink and HTTP webhook sink."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from merchant_verification.shared.telemetry.logging import get_logger
from merchant_verification.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from merchant_verification.core.config import Settings

logger = get_logger(__name__)


class LogOnlyNotificationSink:
    """INotificationSink implementation that logs instead of delivering.

    Use when no delivery channel is configured. Production can swap in the
    webhook sink (or a push/email gateway behind it).
    """

    async def notify(self, merchant_id: str, message: str) -> None:
        logger.info("Merchant notify: %s -> %r", merchant_id, message[:200])
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Merchant notify at %s", utc_now().isoformat())


class WebhookNotificationSink:
    """Delivers notifications by POSTing {merchantId, message} to a webhook.

    Errors are raised to the caller; the worker logs them and carries on so a
    notification outage never fails a verification job.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: str,
        timeout_seconds: float = 5.0,
    ) -> None:
        self.http_client = http_client
        self.url = url
        self.timeout = httpx.Timeout(timeout_seconds)

    async def notify(self, merchant_id: str, message: str) -> None:
        response = await self.http_client.post(
            self.url,
            json={"merchantId": merchant_id, "message": message},
            timeout=self.timeout,
        )
        response.raise_for_status()
        logger.info("Notification delivered for merchant %s (status %s)", merchant_id, response.status_code)


def create_notification_sink(
    settings: "Settings",
    http_client: httpx.AsyncClient | None = None,
) -> LogOnlyNotificationSink | WebhookNotificationSink:
    """Create the sink configured by settings.notification_backend.

    Raises:
        ValueError: Unknown backend, or webhook backend without an HTTP client/URL.
    """
    backend = settings.notification_backend.lower()
    if backend == "log":
        return LogOnlyNotificationSink()
    if backend == "webhook":
        if http_client is None or not settings.notification_webhook_url:
            raise ValueError("webhook notifications require an HTTP client and NOTIFICATION_WEBHOOK_URL")
        return WebhookNotificationSink(
            http_client=http_client,
            url=settings.notification_webhook_url,
            timeout_seconds=settings.notification_timeout_seconds,
        )
    raise ValueError(f"Unknown notification backend: {backend}. Supported: 'log', 'webhook'")
