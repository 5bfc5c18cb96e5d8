"""VerificationService unit tests: cache-first lookups, TTL, authority failures."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from merchant_verification.application.services.verification_service import (
    VerificationService,
)
from merchant_verification.domain.exceptions import (
    CacheUnavailableException,
    VerificationAuthorityException,
)
from merchant_verification.infrastructure.cache.memory_cache import InMemoryResultCache


async def test_fresh_positive_verdict_is_cached(
    verification_service: VerificationService,
    result_cache: InMemoryResultCache,
    authority,
) -> None:
    """Cache miss: the authority is asked once and "true" is stored under the merchant key."""
    result = await verification_service.verify("M-001")

    assert result.success is True
    assert result.cached is False
    assert result.to_dict() == {"success": True, "message": "Verified successfully"}
    assert authority.calls == ["M-001"]
    assert result_cache.raw("merchant_verification:M-001") == "true"


async def test_fresh_negative_verdict_is_cached(
    verification_service: VerificationService,
    result_cache: InMemoryResultCache,
    authority,
) -> None:
    """Negative verdicts are cached too, so a bad merchant is not re-checked within the TTL."""
    authority.outcomes["M-009"] = False

    result = await verification_service.verify("M-009")

    assert result.to_dict() == {"success": False, "message": "Verification failed"}
    assert result_cache.raw("merchant_verification:M-009") == "false"

    again = await verification_service.verify("M-009")
    assert again.success is False
    assert again.cached is True
    assert authority.calls == ["M-009"]


async def test_cache_hit_skips_authority(
    verification_service: VerificationService,
    result_cache: InMemoryResultCache,
    authority,
) -> None:
    """A cached outcome is returned without contacting the authority."""
    await result_cache.set("M-002", True)

    result = await verification_service.verify("M-002")

    assert result.success is True
    assert result.cached is True
    assert result.to_dict() == {"success": True}
    assert authority.calls == []


async def test_repeated_verification_is_idempotent(
    verification_service: VerificationService, authority
) -> None:
    first = await verification_service.verify("M-003")
    second = await verification_service.verify("M-003")

    assert first.success == second.success
    assert authority.calls == ["M-003"]


async def test_expired_outcome_is_rechecked(
    verification_service: VerificationService, authority, clock
) -> None:
    """After the TTL elapses the authority is consulted again."""
    await verification_service.verify("M-004")
    clock.advance(3599)
    await verification_service.verify("M-004")
    assert authority.calls == ["M-004"]

    clock.advance(2)
    await verification_service.verify("M-004")
    assert authority.calls == ["M-004", "M-004"]


async def test_authority_error_returns_error_result_and_is_not_cached(
    verification_service: VerificationService,
    result_cache: InMemoryResultCache,
    authority,
) -> None:
    authority.outcomes["M-005"] = VerificationAuthorityException("M-005", "HTTP 503")

    result = await verification_service.verify("M-005")

    assert result.error is True
    assert result.success is False
    assert result.to_dict() == {
        "success": False,
        "message": "Internal error during verification",
    }
    assert result_cache.raw("merchant_verification:M-005") is None


async def test_authority_timeout_returns_error_result(
    result_cache: InMemoryResultCache,
) -> None:
    """A stuck authority call is cut off by timeout_seconds and not cached."""

    class SlowAuthority:
        async def check(self, merchant_id: str) -> bool:
            await asyncio.sleep(5)
            return True

    svc = VerificationService(
        cache=result_cache, authority=SlowAuthority(), timeout_seconds=0.01
    )

    result = await svc.verify("M-006")

    assert result.error is True
    assert result_cache.raw("merchant_verification:M-006") is None


async def test_cache_failure_propagates(authority) -> None:
    """An unreachable cache is not treated as a miss."""
    cache = AsyncMock()
    cache.get = AsyncMock(side_effect=CacheUnavailableException("get", "merchant_verification:M-007"))
    svc = VerificationService(cache=cache, authority=authority)

    with pytest.raises(CacheUnavailableException):
        await svc.verify("M-007")
    assert authority.calls == []


async def test_outcome_written_with_configured_ttl(authority) -> None:
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    svc = VerificationService(cache=cache, authority=authority, cache_ttl_seconds=120)

    await svc.verify("M-008")

    cache.set.assert_awaited_once_with("M-008", True, ttl=120)
