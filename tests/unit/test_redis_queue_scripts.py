"""RedisJobQueue state machine run through its Lua scripts on fakeredis."""

import fakeredis
import pytest

from merchant_verification.core.config import Settings
from merchant_verification.domain.enums import JobStatus
from merchant_verification.infrastructure.queue import redis_queue
from merchant_verification.infrastructure.queue.redis_queue import RedisJobQueue
from merchant_verification.infrastructure.queue.retry_policy import RetryPolicy


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture(autouse=True)
def _queue_clock(monkeypatch: pytest.MonkeyPatch, clock) -> None:
    monkeypatch.setattr(redis_queue, "epoch_now", clock)


def _queue(redis_client, max_attempts: int = 3) -> RedisJobQueue:
    return RedisJobQueue(
        redis_client=redis_client,
        settings=Settings(job_retention_seconds=600),
        retry_policy=RetryPolicy(
            max_attempts=max_attempts, backoff_seconds=5.0, backoff_max_seconds=60.0
        ),
    )


async def test_failed_job_is_redelivered_after_backoff(redis_client, clock) -> None:
    queue = _queue(redis_client)
    job = await queue.enqueue("M-001")

    claimed = await queue.dequeue(60)
    assert claimed.job_id == job.job_id
    assert claimed.attempts == 1
    assert await queue.fail(claimed, "authority down") is JobStatus.RETRY_SCHEDULED
    assert (await queue.stats())["delayed"] == 1

    clock.advance(4)
    assert await queue.dequeue(60) is None

    clock.advance(1)
    again = await queue.dequeue(60)
    assert again.job_id == job.job_id
    assert again.attempts == 2
    assert again.status is JobStatus.IN_FLIGHT
    assert again.last_error == "authority down"
    assert again.lease_id != claimed.lease_id


async def test_ack_with_stale_lease_returns_false(redis_client, clock) -> None:
    queue = _queue(redis_client)
    await queue.enqueue("M-001")
    first = await queue.dequeue(30)

    clock.advance(31)
    second = await queue.dequeue(30)
    assert second.job_id == first.job_id
    assert second.attempts == 2

    assert await queue.ack(first, {"success": True}) is False
    assert await queue.fail(first, "late") is None
    assert await queue.ack(second, {"success": True}) is True
    assert (await queue.get(first.job_id)).status is JobStatus.COMPLETED


async def test_lease_expiry_on_last_attempt_dead_letters(redis_client, clock) -> None:
    queue = _queue(redis_client, max_attempts=1)
    job = await queue.enqueue("M-001")
    await queue.dequeue(30)

    clock.advance(31)
    assert await queue.dequeue(30) is None

    stored = await queue.get(job.job_id)
    assert stored.status is JobStatus.DEAD_LETTER
    assert stored.last_error == "lease expired"
    assert await queue.stats() == {
        "pending": 0,
        "in_flight": 0,
        "delayed": 0,
        "dead_letter": 1,
    }
    assert await redis_client.lrange(queue.dead_key, 0, -1) == [job.job_id]


async def test_failure_on_last_attempt_dead_letters(redis_client) -> None:
    queue = _queue(redis_client, max_attempts=1)
    await queue.enqueue("M-001")

    claimed = await queue.dequeue(60)
    assert await queue.fail(claimed, "boom") is JobStatus.DEAD_LETTER
    assert (await queue.stats())["dead_letter"] == 1
    assert await queue.dequeue(60) is None


async def test_acked_job_is_kept_for_retention_only(redis_client) -> None:
    queue = _queue(redis_client)
    job = await queue.enqueue("M-002")

    assert await queue.ack(await queue.dequeue(60), {"success": False}) is True

    stored = await queue.get(job.job_id)
    assert stored.status is JobStatus.COMPLETED
    assert stored.result == {"success": False}
    assert stored.lease_id is None
    assert 0 < await redis_client.ttl(queue._job_key(job.job_id)) <= 600
    assert await queue.stats() == {
        "pending": 0,
        "in_flight": 0,
        "delayed": 0,
        "dead_letter": 0,
    }
