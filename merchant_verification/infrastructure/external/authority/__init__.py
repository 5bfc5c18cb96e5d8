"""External verification authority clients and factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from merchant_verification.infrastructure.external.authority.http_authority import (
    HttpVerificationAuthority,
)
from merchant_verification.infrastructure.external.authority.mock_authority import (
    MockVerificationAuthority,
)

if TYPE_CHECKING:
    import httpx

    from merchant_verification.core.config import Settings


def create_verification_authority(
    settings: "Settings",
    http_client: "httpx.AsyncClient | None" = None,
) -> HttpVerificationAuthority | MockVerificationAuthority:
    """Create the authority configured by settings.verification_authority_backend.

    Raises:
        ValueError: Unknown backend, or http backend without an HTTP client/URL.
    """
    backend = settings.verification_authority_backend.lower()
    if backend == "mock":
        return MockVerificationAuthority(success_rate=settings.mock_verification_success_rate)
    if backend == "http":
        if http_client is None or not settings.verification_authority_url:
            raise ValueError("http authority requires an HTTP client and VERIFICATION_AUTHORITY_URL")
        return HttpVerificationAuthority(
            http_client=http_client,
            url=settings.verification_authority_url,
            timeout_seconds=settings.verification_timeout_seconds,
            api_key=settings.verification_authority_api_key,
        )
    raise ValueError(f"Unknown verification authority backend: {backend}. Supported: 'mock', 'http'")


__all__ = [
    "HttpVerificationAuthority",
    "MockVerificationAuthority",
    "create_verification_authority",
]
