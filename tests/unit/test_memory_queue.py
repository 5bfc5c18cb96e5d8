"""InMemoryJobQueue unit tests: FIFO claims, leases, backoff, dead-letter."""

from merchant_verification.domain.enums import JobStatus
from merchant_verification.infrastructure.queue.memory_queue import InMemoryJobQueue
from merchant_verification.infrastructure.queue.retry_policy import RetryPolicy


async def test_jobs_are_claimed_in_fifo_order(job_queue: InMemoryJobQueue) -> None:
    first = await job_queue.enqueue("M-001")
    second = await job_queue.enqueue("M-002")

    claimed = await job_queue.dequeue(60)
    assert claimed.job_id == first.job_id
    assert claimed.status is JobStatus.IN_FLIGHT
    assert claimed.attempts == 1
    assert claimed.lease_id

    assert (await job_queue.dequeue(60)).job_id == second.job_id
    assert await job_queue.dequeue(60) is None


async def test_claimed_job_is_invisible_to_other_workers(job_queue: InMemoryJobQueue) -> None:
    await job_queue.enqueue("M-001")
    await job_queue.dequeue(60)

    assert await job_queue.dequeue(60) is None
    assert await job_queue.stats() == {
        "pending": 0,
        "in_flight": 1,
        "delayed": 0,
        "dead_letter": 0,
    }


async def test_expired_lease_is_redelivered_first(job_queue: InMemoryJobQueue, clock) -> None:
    leased = await job_queue.enqueue("M-001")
    await job_queue.dequeue(30)
    await job_queue.enqueue("M-002")

    clock.advance(31)
    again = await job_queue.dequeue(30)

    assert again.job_id == leased.job_id
    assert again.attempts == 2


async def test_expired_lease_on_last_attempt_is_dead_lettered(clock) -> None:
    queue = InMemoryJobQueue(retry_policy=RetryPolicy(max_attempts=1), clock=clock)
    job = await queue.enqueue("M-001")
    await queue.dequeue(30)

    clock.advance(31)
    assert await queue.dequeue(30) is None

    stored = await queue.get(job.job_id)
    assert stored.status is JobStatus.DEAD_LETTER
    assert stored.last_error == "lease expired"


async def test_ack_with_stale_lease_is_rejected(job_queue: InMemoryJobQueue, clock) -> None:
    await job_queue.enqueue("M-001")
    stale = await job_queue.dequeue(30)
    clock.advance(31)
    current = await job_queue.dequeue(30)

    assert await job_queue.ack(stale, {"success": True}) is False
    assert await job_queue.fail(stale, "boom") is None
    assert await job_queue.ack(current, {"success": True}) is True
    assert (await job_queue.get(current.job_id)).status is JobStatus.COMPLETED


async def test_completed_job_is_not_redelivered(job_queue: InMemoryJobQueue, clock) -> None:
    await job_queue.enqueue("M-001")
    job = await job_queue.dequeue(30)
    await job_queue.ack(job, {"success": True})

    clock.advance(3600)
    assert await job_queue.dequeue(30) is None


async def test_failed_job_waits_for_exponential_backoff(job_queue: InMemoryJobQueue, clock) -> None:
    await job_queue.enqueue("M-001")

    job = await job_queue.dequeue(30)
    assert await job_queue.fail(job, "authority down") is JobStatus.RETRY_SCHEDULED
    clock.advance(4)
    assert await job_queue.dequeue(30) is None
    clock.advance(1)
    job = await job_queue.dequeue(30)
    assert job.attempts == 2

    assert await job_queue.fail(job, "authority down") is JobStatus.RETRY_SCHEDULED
    clock.advance(9)
    assert await job_queue.dequeue(30) is None
    clock.advance(1)
    job = await job_queue.dequeue(30)
    assert job.attempts == 3

    assert await job_queue.fail(job, "authority down") is JobStatus.DEAD_LETTER
    stored = await job_queue.get(job.job_id)
    assert stored.last_error == "authority down"
    assert (await job_queue.stats())["dead_letter"] == 1


async def test_get_returns_a_copy(job_queue: InMemoryJobQueue) -> None:
    job = await job_queue.enqueue("M-001")
    snapshot = await job_queue.get(job.job_id)
    snapshot.status = JobStatus.DEAD_LETTER

    assert (await job_queue.get(job.job_id)).status is JobStatus.QUEUED


async def test_completed_job_is_dropped_after_retention(clock) -> None:
    queue = InMemoryJobQueue(retention_seconds=3600, clock=clock)
    job = await queue.enqueue("M-001")
    await queue.ack(await queue.dequeue(60), {"success": True})

    clock.advance(3599)
    assert (await queue.get(job.job_id)).status is JobStatus.COMPLETED

    clock.advance(1)
    assert await queue.get(job.job_id) is None


async def test_retention_bounds_memory_over_many_jobs(clock) -> None:
    queue = InMemoryJobQueue(retention_seconds=60, clock=clock)
    for n in range(100):
        await queue.enqueue(f"M-{n:03d}")
        await queue.ack(await queue.dequeue(30))

    clock.advance(61)
    await queue.dequeue(30)

    assert queue._jobs == {}
    assert queue._expires == {}


async def test_unfinished_jobs_outlive_retention(job_queue: InMemoryJobQueue, clock) -> None:
    job = await job_queue.enqueue("M-001")
    clock.advance(30 * 86_400)

    assert (await job_queue.get(job.job_id)).status is JobStatus.QUEUED


async def test_retry_decision_follows_retry_policy(clock) -> None:
    policy = RetryPolicy(max_attempts=2, backoff_seconds=1.0)
    queue = InMemoryJobQueue(retry_policy=policy, clock=clock)
    await queue.enqueue("M-001")

    first = await queue.dequeue(60)
    assert policy.should_retry(first.attempts)
    assert await queue.fail(first, "boom") is JobStatus.RETRY_SCHEDULED

    clock.advance(1)
    second = await queue.dequeue(60)
    assert not policy.should_retry(second.attempts)
    assert await queue.fail(second, "boom") is JobStatus.DEAD_LETTER
