"""Redis-backed verification job queue with leases, retries and dead-lettering.

Key layout (prefix verification_queue:<queue name>):
    :pending    list of job ids, LPUSH to enqueue, RPOP to claim (FIFO)
    :inflight   sorted set job id -> lease deadline (Unix seconds)
    :delayed    sorted set job id -> time the retry becomes due
    :dead       list of dead-lettered job ids
    :job:<id>   hash with the job record (VerificationJob.to_record)

State transitions run in Lua scripts so claims, acks and failures are atomic
across any number of worker processes. Only the current lease holder can ack
or fail a job; a worker whose lease expired gets False/None back.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

import redis.asyncio as redis

from merchant_verification.core.config import Settings, get_settings
from merchant_verification.core.constants import QUEUE_KEY_PREFIX
from merchant_verification.domain.entities import VerificationJob
from merchant_verification.domain.enums import JobStatus
from merchant_verification.domain.exceptions import (
    InvalidJobPayloadException,
    QueueUnavailableException,
)
from merchant_verification.infrastructure.queue.retry_policy import RetryPolicy
from merchant_verification.shared.utils.datetime import epoch_now

logger = logging.getLogger(__name__)

# KEYS: pending, inflight, delayed, dead
# ARGV: now, lease deadline, lease id, job key prefix
_DEQUEUE_LUA = """
local now = tonumber(ARGV[1])
local due = redis.call('ZRANGEBYSCORE', KEYS[3], '-inf', now)
for _, id in ipairs(due) do
  redis.call('ZREM', KEYS[3], id)
  redis.call('LPUSH', KEYS[1], id)
  redis.call('HSET', ARGV[4] .. id, 'status', 'queued', 'updated_at', ARGV[1])
end
local expired = redis.call('ZRANGEBYSCORE', KEYS[2], '-inf', now)
for _, id in ipairs(expired) do
  local job_key = ARGV[4] .. id
  redis.call('ZREM', KEYS[2], id)
  redis.call('HDEL', job_key, 'lease_id', 'lease_expires_at')
  local attempts = tonumber(redis.call('HGET', job_key, 'attempts') or '0')
  local max_attempts = tonumber(redis.call('HGET', job_key, 'max_attempts') or '1')
  if attempts >= max_attempts then
    redis.call('HSET', job_key, 'status', 'dead_letter', 'last_error', 'lease expired', 'updated_at', ARGV[1])
    redis.call('LPUSH', KEYS[4], id)
  else
    redis.call('HSET', job_key, 'status', 'queued', 'updated_at', ARGV[1])
    redis.call('RPUSH', KEYS[1], id)
  end
end
while true do
  local id = redis.call('RPOP', KEYS[1])
  if not id then
    return false
  end
  local job_key = ARGV[4] .. id
  if redis.call('EXISTS', job_key) == 1 then
    redis.call('ZADD', KEYS[2], ARGV[2], id)
    redis.call('HINCRBY', job_key, 'attempts', 1)
    redis.call('HSET', job_key, 'status', 'in_flight', 'lease_id', ARGV[3],
      'lease_expires_at', ARGV[2], 'updated_at', ARGV[1])
    return redis.call('HGETALL', job_key)
  end
end
"""

# KEYS: inflight, job key
# ARGV: job id, lease id, now, result json, retention seconds
_ACK_LUA = """
if redis.call('HGET', KEYS[2], 'lease_id') ~= ARGV[2] then
  return 0
end
redis.call('ZREM', KEYS[1], ARGV[1])
redis.call('HDEL', KEYS[2], 'lease_id', 'lease_expires_at')
redis.call('HSET', KEYS[2], 'status', 'completed', 'result', ARGV[4], 'updated_at', ARGV[3])
redis.call('EXPIRE', KEYS[2], ARGV[5])
return 1
"""

# KEYS: inflight, delayed, dead, job key
# ARGV: job id, lease id, now, error, retry due time
_FAIL_LUA = """
if redis.call('HGET', KEYS[4], 'lease_id') ~= ARGV[2] then
  return false
end
redis.call('ZREM', KEYS[1], ARGV[1])
redis.call('HDEL', KEYS[4], 'lease_id', 'lease_expires_at')
local attempts = tonumber(redis.call('HGET', KEYS[4], 'attempts') or '0')
local max_attempts = tonumber(redis.call('HGET', KEYS[4], 'max_attempts') or '1')
if attempts >= max_attempts then
  redis.call('HSET', KEYS[4], 'status', 'dead_letter', 'last_error', ARGV[4], 'updated_at', ARGV[3])
  redis.call('LPUSH', KEYS[3], ARGV[1])
  return 'dead_letter'
end
redis.call('HSET', KEYS[4], 'status', 'retry_scheduled', 'last_error', ARGV[4], 'updated_at', ARGV[3])
redis.call('ZADD', KEYS[2], ARGV[5], ARGV[1])
return 'retry_scheduled'
"""


def _pairs_to_dict(flat: list[Any]) -> dict[str, str]:
    """Convert an HGETALL reply returned from Lua ([k1, v1, k2, v2, ...]) to a dict."""
    values = [v.decode() if isinstance(v, bytes) else str(v) for v in flat]
    return dict(zip(values[0::2], values[1::2]))


class RedisJobQueue:
    """Durable at-least-once job queue on Redis.

    Call connect() at startup and disconnect() at shutdown. A client can be
    injected for testing or to share one connection pool with the cache.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.redis = redis_client
        self.settings = settings or get_settings()
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self.name = self.settings.queue_name
        self.retention_seconds = self.settings.job_retention_seconds
        self._owns_client = redis_client is None
        base = f"{QUEUE_KEY_PREFIX}:{self.name}"
        self.pending_key = f"{base}:pending"
        self.inflight_key = f"{base}:inflight"
        self.delayed_key = f"{base}:delayed"
        self.dead_key = f"{base}:dead"
        self.job_key_prefix = f"{base}:job:"
        self._dequeue_script: Any = None
        self._ack_script: Any = None
        self._fail_script: Any = None
        if redis_client is not None:
            self._register_scripts()

    def _register_scripts(self) -> None:
        assert self.redis is not None
        self._dequeue_script = self.redis.register_script(_DEQUEUE_LUA)
        self._ack_script = self.redis.register_script(_ACK_LUA)
        self._fail_script = self.redis.register_script(_FAIL_LUA)

    def _job_key(self, job_id: str) -> str:
        return f"{self.job_key_prefix}{job_id}"

    def _client(self, operation: str) -> redis.Redis:
        if self.redis is None:
            raise QueueUnavailableException(operation, "not connected")
        return self.redis

    async def connect(self) -> None:
        """Create the Redis client (if not injected) and register scripts."""
        if self.redis is None:
            from merchant_verification.infrastructure.cache.redis_cache import (
                create_redis_client,
            )

            self.redis = create_redis_client(self.settings)
            self._register_scripts()
        try:
            await self.redis.ping()
            logger.info("Job queue %r connected", self.name)
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Job queue connection failed: %s", e)

    async def disconnect(self) -> None:
        if self.redis is not None and self._owns_client:
            await self.redis.aclose()
            self.redis = None
            logger.info("Job queue %r disconnected", self.name)

    async def ping(self) -> bool:
        if self.redis is None:
            return False
        try:
            await self.redis.ping()
        except redis.RedisError:
            return False
        return True

    async def enqueue(self, merchant_id: str) -> VerificationJob:
        """Store a new queued job and push it onto the pending list.

        Raises:
            QueueUnavailableException: Redis cannot be reached.
        """
        client = self._client("enqueue")
        now = epoch_now()
        job = VerificationJob(
            job_id=str(uuid.uuid4()),
            merchant_id=merchant_id,
            status=JobStatus.QUEUED,
            max_attempts=self.retry_policy.max_attempts,
            enqueued_at=now,
            updated_at=now,
        )
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.hset(self._job_key(job.job_id), mapping=job.to_record())
                pipe.lpush(self.pending_key, job.job_id)
                await pipe.execute()
        except redis.RedisError as e:
            raise QueueUnavailableException("enqueue", str(e)) from e
        logger.info("Enqueued verification job %s for merchant %s", job.job_id, merchant_id)
        return job

    async def dequeue(self, lease_seconds: int) -> VerificationJob | None:
        """Claim the next ready job for lease_seconds.

        Also promotes due retries and re-queues jobs whose lease expired
        (dead-lettering those that already used their last attempt).
        Jobs with an undecodable payload are dead-lettered and skipped.

        Raises:
            QueueUnavailableException: Redis cannot be reached.
        """
        self._client("dequeue")
        now = epoch_now()
        lease_id = uuid.uuid4().hex
        try:
            reply = await self._dequeue_script(
                keys=[self.pending_key, self.inflight_key, self.delayed_key, self.dead_key],
                args=[repr(now), repr(now + lease_seconds), lease_id, self.job_key_prefix],
            )
        except redis.RedisError as e:
            raise QueueUnavailableException("dequeue", str(e)) from e
        if not reply:
            return None
        record = _pairs_to_dict(reply)
        try:
            return VerificationJob.from_record(record)
        except InvalidJobPayloadException as e:
            logger.error("Dead-lettering job with invalid payload: %s", e.details)
            await self._dead_letter_invalid(record.get("job_id", ""), e.message)
            return None

    async def _dead_letter_invalid(self, job_id: str, error: str) -> None:
        client = self._client("dequeue")
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.zrem(self.inflight_key, job_id)
                pipe.hdel(self._job_key(job_id), "lease_id", "lease_expires_at")
                pipe.hset(
                    self._job_key(job_id),
                    mapping={
                        "status": JobStatus.DEAD_LETTER.value,
                        "last_error": error,
                        "updated_at": repr(epoch_now()),
                    },
                )
                pipe.lpush(self.dead_key, job_id)
                await pipe.execute()
        except redis.RedisError as e:
            raise QueueUnavailableException("dequeue", str(e)) from e

    async def ack(self, job: VerificationJob, result: dict[str, Any] | None = None) -> bool:
        """Mark job completed if this worker still holds its lease.

        Returns:
            True if acknowledged; False if the lease was lost (job re-delivered elsewhere).
        """
        self._client("ack")
        try:
            acked = await self._ack_script(
                keys=[self.inflight_key, self._job_key(job.job_id)],
                args=[
                    job.job_id,
                    job.lease_id or "",
                    repr(epoch_now()),
                    json.dumps(result or {}),
                    self.retention_seconds,
                ],
            )
        except redis.RedisError as e:
            raise QueueUnavailableException("ack", str(e)) from e
        if not acked:
            logger.warning("Lease lost before ack for job %s (merchant %s)", job.job_id, job.merchant_id)
            return False
        job.status = JobStatus.COMPLETED
        job.result = result
        return True

    async def fail(self, job: VerificationJob, error: str) -> JobStatus | None:
        """Record a failed delivery: schedule a retry or dead-letter the job.

        Returns:
            RETRY_SCHEDULED or DEAD_LETTER; None if the lease was lost.
        """
        self._client("fail")
        retry_at = epoch_now() + self.retry_policy.delay_for(job.attempts)
        try:
            reply = await self._fail_script(
                keys=[
                    self.inflight_key,
                    self.delayed_key,
                    self.dead_key,
                    self._job_key(job.job_id),
                ],
                args=[job.job_id, job.lease_id or "", repr(epoch_now()), error, repr(retry_at)],
            )
        except redis.RedisError as e:
            raise QueueUnavailableException("fail", str(e)) from e
        if not reply:
            logger.warning("Lease lost before fail for job %s (merchant %s)", job.job_id, job.merchant_id)
            return None
        status = JobStatus(reply.decode() if isinstance(reply, bytes) else reply)
        job.status = status
        job.last_error = error
        return status

    async def get(self, job_id: str) -> VerificationJob | None:
        client = self._client("get")
        try:
            record = await client.hgetall(self._job_key(job_id))
        except redis.RedisError as e:
            raise QueueUnavailableException("get", str(e)) from e
        if not record:
            return None
        return VerificationJob.from_record(record)

    async def stats(self) -> dict[str, int]:
        client = self._client("stats")
        try:
            async with client.pipeline(transaction=False) as pipe:
                pipe.llen(self.pending_key)
                pipe.zcard(self.inflight_key)
                pipe.zcard(self.delayed_key)
                pipe.llen(self.dead_key)
                pending, in_flight, delayed, dead = await pipe.execute()
        except redis.RedisError as e:
            raise QueueUnavailableException("stats", str(e)) from e
        return {
            "pending": int(pending),
            "in_flight": int(in_flight),
            "delayed": int(delayed),
            "dead_letter": int(dead),
        }
