"""Pytest configuration and fixtures for merchant verification.

HTTP tests run merchant_verification.main:app over ASGITransport, which does
not run the lifespan; the client fixture installs in-memory pipeline
components on app.state instead. Nothing here needs Redis.
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from merchant_verification.application.services.verification_service import (
    VerificationService,
)
from merchant_verification.application.services.verification_worker import (
    VerificationWorker,
)
from merchant_verification.core.components import PipelineComponents
from merchant_verification.core.config import get_settings
from merchant_verification.core.limiter import limiter
from merchant_verification.infrastructure.cache.memory_cache import InMemoryResultCache
from merchant_verification.infrastructure.queue.memory_queue import InMemoryJobQueue
from merchant_verification.infrastructure.queue.retry_policy import RetryPolicy
from merchant_verification.main import app


class FakeClock:
    """Manually advanced time source for TTL and lease tests."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubAuthority:
    """Verification authority with scripted verdicts per merchant.

    outcomes maps merchant id to True/False or to an exception to raise;
    unknown merchants get default. Every call is recorded in calls.
    """

    def __init__(self, default: bool = True) -> None:
        self.default = default
        self.outcomes: dict[str, bool | Exception] = {}
        self.calls: list[str] = []

    async def check(self, merchant_id: str) -> bool:
        self.calls.append(merchant_id)
        outcome = self.outcomes.get(merchant_id, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingNotifier:
    """Notification sink that records (merchant_id, message) pairs."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.error: Exception | None = None

    async def notify(self, merchant_id: str, message: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((merchant_id, message))


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    """Rate limit counters are process-wide; start every test from zero."""
    limiter.reset()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def retry_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, backoff_seconds=5.0, backoff_max_seconds=60.0)


@pytest.fixture
def result_cache(clock: FakeClock) -> InMemoryResultCache:
    return InMemoryResultCache(default_ttl=3600, clock=clock)


@pytest.fixture
def job_queue(retry_policy: RetryPolicy, clock: FakeClock) -> InMemoryJobQueue:
    return InMemoryJobQueue(retry_policy=retry_policy, clock=clock)


@pytest.fixture
def authority() -> StubAuthority:
    return StubAuthority()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def verification_service(
    result_cache: InMemoryResultCache, authority: StubAuthority
) -> VerificationService:
    return VerificationService(cache=result_cache, authority=authority, cache_ttl_seconds=3600)


@pytest.fixture
def worker(
    job_queue: InMemoryJobQueue,
    verification_service: VerificationService,
    notifier: RecordingNotifier,
) -> VerificationWorker:
    return VerificationWorker(
        queue=job_queue,
        verification_service=verification_service,
        notifier=notifier,
        lease_seconds=60,
        job_timeout_seconds=5.0,
        poll_interval_seconds=0.01,
    )


@pytest.fixture
def components(
    result_cache: InMemoryResultCache,
    job_queue: InMemoryJobQueue,
    authority: StubAuthority,
    notifier: RecordingNotifier,
) -> PipelineComponents:
    return PipelineComponents(
        settings=get_settings(),
        cache=result_cache,
        queue=job_queue,
        authority=authority,
        notifier=notifier,
    )


@pytest.fixture
async def client(components: PipelineComponents) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI) with in-memory components."""
    app.state.components = components
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.state.components = None
