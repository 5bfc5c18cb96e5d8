"""VerificationWorker unit tests: notify once, retry, dead-letter, lease handling."""

import asyncio

from merchant_verification.application.services.verification_worker import (
    VerificationWorker,
)
from merchant_verification.domain.enums import JobStatus
from merchant_verification.domain.exceptions import VerificationAuthorityException
from merchant_verification.infrastructure.queue.memory_queue import InMemoryJobQueue


async def test_successful_job_notifies_once_and_completes(
    worker: VerificationWorker, job_queue: InMemoryJobQueue, notifier
) -> None:
    job = await job_queue.enqueue("M-001")

    assert await worker.run_once() is True

    stored = await job_queue.get(job.job_id)
    assert stored.status is JobStatus.COMPLETED
    assert stored.result == {"success": True, "message": "Verified successfully"}
    assert notifier.sent == [("M-001", "Verification successful!")]


async def test_negative_verdict_sends_failure_notification(
    worker: VerificationWorker, job_queue: InMemoryJobQueue, authority, notifier
) -> None:
    authority.outcomes["M-002"] = False
    job = await job_queue.enqueue("M-002")

    await worker.run_once()

    stored = await job_queue.get(job.job_id)
    assert stored.status is JobStatus.COMPLETED
    assert stored.result == {"success": False, "message": "Verification failed"}
    assert notifier.sent == [("M-002", "Verification failed!")]


async def test_run_once_returns_false_on_empty_queue(worker: VerificationWorker) -> None:
    assert await worker.run_once() is False


async def test_authority_error_schedules_retry_without_notification(
    worker: VerificationWorker, job_queue: InMemoryJobQueue, authority, notifier, clock
) -> None:
    authority.outcomes["M-003"] = VerificationAuthorityException("M-003", "timeout")
    job = await job_queue.enqueue("M-003")

    await worker.run_once()

    stored = await job_queue.get(job.job_id)
    assert stored.status is JobStatus.RETRY_SCHEDULED
    assert stored.attempts == 1
    assert "M-003" in stored.last_error
    assert notifier.sent == []

    # Not yet due: backoff for the first retry is 5s.
    assert await worker.run_once() is False
    clock.advance(5)
    authority.outcomes["M-003"] = True
    assert await worker.run_once() is True

    stored = await job_queue.get(job.job_id)
    assert stored.status is JobStatus.COMPLETED
    assert stored.attempts == 2
    assert notifier.sent == [("M-003", "Verification successful!")]


async def test_exhausted_retries_dead_letter_the_job(
    worker: VerificationWorker, job_queue: InMemoryJobQueue, authority, notifier, clock
) -> None:
    authority.outcomes["M-004"] = VerificationAuthorityException("M-004", "HTTP 500")
    job = await job_queue.enqueue("M-004")

    for _ in range(3):
        assert await worker.run_once() is True
        clock.advance(60)

    stored = await job_queue.get(job.job_id)
    assert stored.status is JobStatus.DEAD_LETTER
    assert stored.attempts == 3
    assert [j.job_id for j in await job_queue.dead_letters()] == [job.job_id]
    assert notifier.sent == []
    assert await worker.run_once() is False


async def test_notifier_failure_does_not_fail_the_job(
    worker: VerificationWorker, job_queue: InMemoryJobQueue, notifier
) -> None:
    notifier.error = RuntimeError("push gateway down")
    job = await job_queue.enqueue("M-005")

    await worker.run_once()

    stored = await job_queue.get(job.job_id)
    assert stored.status is JobStatus.COMPLETED


async def test_slow_job_times_out_and_is_retried(
    job_queue: InMemoryJobQueue, verification_service, notifier
) -> None:
    class HangingNotifier:
        async def notify(self, merchant_id: str, message: str) -> None:
            await asyncio.sleep(5)

    slow_worker = VerificationWorker(
        queue=job_queue,
        verification_service=verification_service,
        notifier=HangingNotifier(),
        lease_seconds=60,
        job_timeout_seconds=0.01,
    )
    job = await job_queue.enqueue("M-006")

    status = await slow_worker.handle(await job_queue.dequeue(60))

    assert status is JobStatus.RETRY_SCHEDULED
    stored = await job_queue.get(job.job_id)
    assert "timed out" in stored.last_error


async def test_lost_lease_is_not_acknowledged(
    worker: VerificationWorker, job_queue: InMemoryJobQueue, clock
) -> None:
    """A worker whose lease expired cannot complete the re-delivered job."""
    job = await job_queue.enqueue("M-007")
    stale = await job_queue.dequeue(60)
    clock.advance(61)
    fresh = await job_queue.dequeue(60)
    assert fresh.job_id == job.job_id

    assert await worker.handle(stale) is None

    stored = await job_queue.get(job.job_id)
    assert stored.status is JobStatus.IN_FLIGHT
    assert stored.lease_id == fresh.lease_id


async def test_run_stops_when_event_is_set(
    worker: VerificationWorker, job_queue: InMemoryJobQueue, notifier
) -> None:
    await job_queue.enqueue("M-008")
    stop_event = asyncio.Event()
    task = asyncio.create_task(worker.run(stop_event))

    for _ in range(100):
        if notifier.sent:
            break
        await asyncio.sleep(0.01)
    stop_event.set()
    await asyncio.wait_for(task, timeout=1.0)

    assert notifier.sent == [("M-008", "Verification successful!")]
