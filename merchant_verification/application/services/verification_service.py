"""Merchant verification service: cached external verification check."""

from __future__ import annotations

import asyncio
import logging

from merchant_verification.application.interfaces.services import (
    IResultCache,
    IVerificationAuthority,
)
from merchant_verification.core.constants import (
    RESULT_MESSAGE_INTERNAL_ERROR,
    RESULT_MESSAGE_NOT_VERIFIED,
    RESULT_MESSAGE_VERIFIED,
    VERIFICATION_CACHE_TTL_SECONDS,
)
from merchant_verification.domain.entities import VerificationResult
from merchant_verification.domain.exceptions import VerificationAuthorityException
from merchant_verification.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)


class VerificationService:
    """Verifies merchants against the external authority, cache first.

    A cached outcome is authoritative until it expires. Fresh outcomes are
    written through for both polarities so repeated bad submissions do not
    hit the authority again. Authority failures are not verdicts: they come
    back as an error result and are never cached. Cache failures propagate.
    """

    def __init__(
        self,
        cache: IResultCache,
        authority: IVerificationAuthority,
        cache_ttl_seconds: int = VERIFICATION_CACHE_TTL_SECONDS,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize.

        Args:
            cache: Result cache shared by all workers.
            authority: External verification authority.
            cache_ttl_seconds: TTL for fresh outcomes.
            timeout_seconds: Upper bound on one authority call; None disables it.
        """
        self.cache = cache
        self.authority = authority
        self.cache_ttl_seconds = cache_ttl_seconds
        self.timeout_seconds = timeout_seconds

    @traced("verification.verify")
    async def verify(self, merchant_id: str) -> VerificationResult:
        """Return the verification outcome for merchant_id.

        Raises:
            CacheUnavailableException: The result cache cannot be reached.
        """
        logger.info("Starting verification for merchant: %s", merchant_id)

        cached = await self.cache.get(merchant_id)
        if cached is not None:
            logger.info("Found cached verification result for merchant %s", merchant_id)
            add_span_attributes(cache_hit=True)
            return VerificationResult(success=cached, cached=True)

        add_span_attributes(cache_hit=False)
        try:
            if self.timeout_seconds is None:
                verified = await self.authority.check(merchant_id)
            else:
                verified = await asyncio.wait_for(
                    self.authority.check(merchant_id), timeout=self.timeout_seconds
                )
        except VerificationAuthorityException as e:
            logger.warning(
                "Verification authority error for merchant %s: %s",
                merchant_id,
                e.details.get("reason"),
            )
            return VerificationResult(
                success=False, message=RESULT_MESSAGE_INTERNAL_ERROR, error=True
            )
        except TimeoutError:
            logger.warning(
                "Verification authority timed out after %ss for merchant %s",
                self.timeout_seconds,
                merchant_id,
            )
            return VerificationResult(
                success=False, message=RESULT_MESSAGE_INTERNAL_ERROR, error=True
            )

        logger.info("Verification result for %s: %s", merchant_id, verified)
        await self.cache.set(merchant_id, verified, ttl=self.cache_ttl_seconds)
        return VerificationResult(
            success=verified,
            message=RESULT_MESSAGE_VERIFIED if verified else RESULT_MESSAGE_NOT_VERIFIED,
        )
