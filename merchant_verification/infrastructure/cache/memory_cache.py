"""In-memory verification result cache for a single process.

Same contract as RedisResultCache (keys, TTL, "true"/"false" values) without
cross-process sharing. Used for local development and tests.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from merchant_verification.core.constants import VERIFICATION_CACHE_TTL_SECONDS
from merchant_verification.infrastructure.cache.keys import (
    decode_outcome,
    encode_outcome,
    merchant_verification_key,
)

logger = logging.getLogger(__name__)


class InMemoryResultCache:
    """Dict-backed result cache with per-entry expiry.

    Args:
        default_ttl: TTL in seconds used when set() is called without one.
        clock: Monotonic time source; tests pass a fake clock to step past TTLs.
    """

    def __init__(
        self,
        default_ttl: int = VERIFICATION_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        self._entries.clear()

    def is_available(self) -> bool:
        return True

    async def ping(self) -> bool:
        return True

    async def get(self, merchant_id: str) -> bool | None:
        """Return the cached outcome, or None when absent or expired."""
        key = merchant_verification_key(merchant_id)
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug("Cache EXPIRED: %s", key)
                return None
        return decode_outcome(value)

    async def set(self, merchant_id: str, outcome: bool, ttl: int | None = None) -> None:
        """Store outcome, overwriting any prior entry; expiry starts now."""
        key = merchant_verification_key(merchant_id)
        if ttl is None:
            ttl = self.default_ttl
        async with self._lock:
            self._entries[key] = (encode_outcome(outcome), self._clock() + ttl)

    async def delete(self, merchant_id: str) -> None:
        key = merchant_verification_key(merchant_id)
        async with self._lock:
            self._entries.pop(key, None)

    def raw(self, key: str) -> str | None:
        """Return the stored string for a full cache key, ignoring expiry (inspection)."""
        entry = self._entries.get(key)
        return entry[0] if entry else None
