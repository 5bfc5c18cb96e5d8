"""Cache: verification result cache backends and key utilities.

RedisResultCache is the shared cross-process backend; InMemoryResultCache
serves a single process. create_result_cache picks one from settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from merchant_verification.infrastructure.cache.keys import merchant_verification_key
from merchant_verification.infrastructure.cache.memory_cache import InMemoryResultCache
from merchant_verification.infrastructure.cache.redis_cache import (
    RedisResultCache,
    create_redis_client,
)

if TYPE_CHECKING:
    from merchant_verification.core.config import Settings


def create_result_cache(settings: "Settings") -> RedisResultCache | InMemoryResultCache:
    """Create the result cache configured by settings.cache_backend.

    Raises:
        ValueError: Unknown backend.
    """
    backend = settings.cache_backend.lower()
    if backend == "redis":
        return RedisResultCache(settings=settings)
    if backend == "memory":
        return InMemoryResultCache(default_ttl=settings.verification_cache_ttl_seconds)
    raise ValueError(f"Unknown cache backend: {backend}. Supported: 'redis', 'memory'")


__all__ = [
    "InMemoryResultCache",
    "RedisResultCache",
    "create_redis_client",
    "create_result_cache",
    "merchant_verification_key",
]
