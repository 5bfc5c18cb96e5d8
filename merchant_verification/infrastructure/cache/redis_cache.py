"""Redis-backed verification result cache.

Stores merchant_verification:<merchant_id> -> "true"/"false" with a TTL so
every API and worker process sees the same outcomes. Unlike a best-effort
performance cache, transport errors are surfaced as CacheUnavailableException:
the cache is what makes repeated jobs idempotent, so silently skipping it
would re-run the external check.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from merchant_verification.core.config import Settings, get_settings
from merchant_verification.domain.exceptions import CacheUnavailableException
from merchant_verification.infrastructure.cache.keys import (
    decode_outcome,
    encode_outcome,
    merchant_verification_key,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_redis_client(settings: Settings) -> redis.Redis:
    """Build an asyncio Redis client from settings (shared by cache and queue)."""
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password.get_secret_value() if settings.redis_password else None,
        decode_responses=True,
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
        socket_keepalive=True,
    )


class RedisResultCache:
    """Async Redis result cache with TTL support.

    Call connect() at startup and disconnect() at shutdown. A client can be
    injected for testing; an injected client is considered connected.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize result cache.

        Args:
            redis_client: Optional Redis client for testing or DI.
            settings: Optional settings; defaults to get_settings().
        """
        self.redis = redis_client
        self.settings = settings or get_settings()
        self.default_ttl = self.settings.verification_cache_ttl_seconds
        self._connected = redis_client is not None
        self._owns_client = redis_client is None

    async def connect(self) -> None:
        """Establish Redis connection. Call on process startup."""
        if self._connected:
            return
        if self.redis is None:
            self.redis = create_redis_client(self.settings)
        try:
            await self.redis.ping()
            self._connected = True
            logger.info(
                "Result cache connected: %s:%s",
                self.settings.redis_host,
                self.settings.redis_port,
            )
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Result cache connection failed: %s", e)
            self._connected = False

    async def disconnect(self) -> None:
        """Close Redis connection. Call on process shutdown."""
        if self.redis is not None and self._owns_client:
            await self.redis.aclose()
            self.redis = None
            logger.info("Result cache disconnected")
        self._connected = False

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def ping(self) -> bool:
        """Return True if Redis answers PING (readiness checks)."""
        if self.redis is None:
            return False
        try:
            await self.redis.ping()
        except redis.RedisError:
            self._connected = False
            return False
        self._connected = True
        return True

    async def _execute(
        self,
        operation: str,
        key: str,
        command: Callable[[redis.Redis], Awaitable[T]],
    ) -> T:
        """Run a Redis command, retrying once after a connection error.

        Raises:
            CacheUnavailableException: Redis is unavailable or the retry also failed.
        """
        if self.redis is None:
            raise CacheUnavailableException(operation, key)
        try:
            return await command(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            logger.warning("Cache %s failed for key %s, retrying once", operation, key)
            try:
                result = await command(self.redis)
            except redis.RedisError as e:
                self._connected = False
                raise CacheUnavailableException(operation, key) from e
            self._connected = True
            return result
        except redis.RedisError as e:
            logger.exception("Cache %s error for key %s", operation, key)
            raise CacheUnavailableException(operation, key) from e

    async def get(self, merchant_id: str) -> bool | None:
        """Return the cached outcome for merchant_id, or None when absent.

        Raises:
            CacheUnavailableException: Redis cannot be reached.
        """
        key = merchant_verification_key(merchant_id)
        raw: Any = await self._execute("get", key, lambda r: r.get(key))
        if raw is None:
            logger.debug("Cache MISS: %s", key)
            return None
        outcome = decode_outcome(raw)
        if outcome is None:
            logger.warning("Ignoring unrecognized cached value for %s: %r", key, raw)
            return None
        logger.debug("Cache HIT: %s", key)
        return outcome

    async def set(self, merchant_id: str, outcome: bool, ttl: int | None = None) -> None:
        """Store outcome with TTL (default verification_cache_ttl_seconds).

        A ttl of 0 or less stores nothing and clears any prior entry, matching
        an entry that expires immediately.

        Raises:
            CacheUnavailableException: Redis cannot be reached.
        """
        key = merchant_verification_key(merchant_id)
        if ttl is None:
            ttl = self.default_ttl
        if ttl <= 0:
            await self.delete(merchant_id)
            return
        value = encode_outcome(outcome)
        await self._execute("set", key, lambda r: r.set(key, value, ex=ttl))
        logger.debug("Cache SET: %s=%s (TTL: %ss)", key, value, ttl)

    async def delete(self, merchant_id: str) -> None:
        """Remove the cached outcome for merchant_id."""
        key = merchant_verification_key(merchant_id)
        await self._execute("delete", key, lambda r: r.delete(key))
        logger.debug("Cache DELETE: %s", key)
