"""Pipeline components: construction and lifecycle of shared clients.

Both process entry points (API lifespan and the worker script) build one
PipelineComponents at startup and close it at shutdown. Nothing here is a
module-level singleton; tests construct components from fakes directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from merchant_verification.application.interfaces.services import (
    IJobQueue,
    INotificationSink,
    IResultCache,
    IVerificationAuthority,
)
from merchant_verification.application.services.verification_service import (
    VerificationService,
)
from merchant_verification.application.services.verification_worker import (
    VerificationWorker,
)
from merchant_verification.core.config import Settings
from merchant_verification.infrastructure.cache import create_result_cache
from merchant_verification.infrastructure.external.authority import (
    create_verification_authority,
)
from merchant_verification.infrastructure.queue import create_job_queue
from merchant_verification.infrastructure.services import create_notification_sink

logger = logging.getLogger(__name__)


@dataclass
class PipelineComponents:
    """Connected clients plus the services built on top of them."""

    settings: Settings
    cache: IResultCache
    queue: IJobQueue
    authority: IVerificationAuthority
    notifier: INotificationSink
    http_client: httpx.AsyncClient | None = None

    @classmethod
    async def create(cls, settings: Settings) -> PipelineComponents:
        """Build and connect all clients configured by settings."""
        http_client = httpx.AsyncClient(timeout=30.0)
        cache = create_result_cache(settings)
        queue = create_job_queue(settings)
        await cache.connect()
        await queue.connect()
        components = cls(
            settings=settings,
            cache=cache,
            queue=queue,
            authority=create_verification_authority(settings, http_client),
            notifier=create_notification_sink(settings, http_client),
            http_client=http_client,
        )
        logger.info(
            "Pipeline ready: cache=%s queue=%s authority=%s notifications=%s",
            settings.cache_backend,
            settings.queue_backend,
            settings.verification_authority_backend,
            settings.notification_backend,
        )
        return components

    def verification_service(self) -> VerificationService:
        return VerificationService(
            cache=self.cache,
            authority=self.authority,
            cache_ttl_seconds=self.settings.verification_cache_ttl_seconds,
            timeout_seconds=self.settings.verification_timeout_seconds,
        )

    def worker(self) -> VerificationWorker:
        return VerificationWorker(
            queue=self.queue,
            verification_service=self.verification_service(),
            notifier=self.notifier,
            lease_seconds=self.settings.job_lease_seconds,
            job_timeout_seconds=self.settings.job_timeout_seconds,
            poll_interval_seconds=self.settings.worker_poll_interval_seconds,
        )

    async def readiness(self) -> dict[str, Any]:
        """Ping cache and queue; include queue stats when the queue answers."""
        cache_ok = await _ping(self.cache)
        queue_ok = await _ping(self.queue)
        report: dict[str, Any] = {"cache": cache_ok, "queue": queue_ok}
        if queue_ok:
            report["queue_stats"] = await self.queue.stats()
        return report

    async def close(self) -> None:
        """Disconnect clients in reverse order of creation."""
        await _disconnect(self.queue)
        await _disconnect(self.cache)
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
        logger.info("Pipeline components closed")


async def _ping(client: Any) -> bool:
    ping = getattr(client, "ping", None)
    if ping is None:
        return True
    return bool(await ping())


async def _disconnect(client: Any) -> None:
    disconnect = getattr(client, "disconnect", None)
    if disconnect is not None:
        await disconnect()
