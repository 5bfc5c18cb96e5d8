"""Placeholder verification authority: a weighted coin flip.

Stands in for a real external check during development. Replace with
HttpVerificationAuthority (VERIFICATION_AUTHORITY_BACKEND=http) in any
deployment where the verdict matters.
"""

from __future__ import annotations

import logging
import random

logger = logging.getLogger(__name__)


class MockVerificationAuthority:
    """Returns True with probability success_rate.

    Args:
        success_rate: Probability of a positive verdict (default 0.7).
        rng: Random source; tests pass a seeded random.Random.
    """

    def __init__(self, success_rate: float = 0.7, rng: random.Random | None = None) -> None:
        self.success_rate = success_rate
        self._rng = rng or random.Random()

    async def check(self, merchant_id: str) -> bool:
        verified = self._rng.random() < self.success_rate
        logger.info("Mock verification result for %s: %s", merchant_id, verified)
        return verified
