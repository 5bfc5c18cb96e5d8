"""Verification worker: consumes verification jobs from the queue.

One job at a time per worker; run more worker processes to scale out. The
worker keeps no state between jobs. Anything that goes wrong while
processing a job is reported to the queue via fail(), whose retry/backoff
and dead-letter policy decides what happens next.
"""

from __future__ import annotations

import asyncio
import logging

from merchant_verification.application.interfaces.services import (
    IJobQueue,
    INotificationSink,
)
from merchant_verification.application.services.verification_service import (
    VerificationService,
)
from merchant_verification.core.constants import (
    NOTIFICATION_VERIFICATION_FAILED,
    NOTIFICATION_VERIFICATION_SUCCEEDED,
)
from merchant_verification.domain.entities import VerificationJob, VerificationResult
from merchant_verification.domain.enums import JobStatus
from merchant_verification.domain.exceptions import VerificationAuthorityException
from merchant_verification.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)


class VerificationWorker:
    """Pulls jobs, verifies merchants, notifies, and acknowledges."""

    def __init__(
        self,
        queue: IJobQueue,
        verification_service: VerificationService,
        notifier: INotificationSink,
        lease_seconds: int = 60,
        job_timeout_seconds: float = 45.0,
        poll_interval_seconds: float = 1.0,
    ) -> None:
        """Initialize.

        Args:
            queue: Job queue to consume.
            verification_service: Cached verification check.
            notifier: Notification sink for completed jobs.
            lease_seconds: Lease requested per claimed job.
            job_timeout_seconds: Upper bound on processing one job; must be shorter than the lease.
            poll_interval_seconds: Sleep between polls while the queue is empty.
        """
        self.queue = queue
        self.verification_service = verification_service
        self.notifier = notifier
        self.lease_seconds = lease_seconds
        self.job_timeout_seconds = job_timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds

    async def _notify(self, merchant_id: str, message: str) -> None:
        """Send the notification; failures are logged and never fail the job."""
        try:
            await self.notifier.notify(merchant_id, message)
        except Exception:
            logger.exception("Notification failed for merchant %s", merchant_id)

    @traced("verification.process_job")
    async def process_job(self, job: VerificationJob) -> VerificationResult:
        """Verify the job's merchant and send the outcome notification.

        Raises:
            VerificationAuthorityException: The authority gave no verdict (retry).
            CacheUnavailableException: The result cache is unreachable (retry).
        """
        merchant_id = job.merchant_id
        logger.info(
            "Processing verification for merchant: %s (job %s, attempt %s/%s)",
            merchant_id,
            job.job_id,
            job.attempts,
            job.max_attempts,
        )

        result = await self.verification_service.verify(merchant_id)
        if result.error:
            raise VerificationAuthorityException(
                merchant_id, result.message or "verification error"
            )

        if result.success:
            await self._notify(merchant_id, NOTIFICATION_VERIFICATION_SUCCEEDED)
            logger.info("Merchant %s verified successfully.", merchant_id)
        else:
            await self._notify(merchant_id, NOTIFICATION_VERIFICATION_FAILED)
            logger.warning("Merchant %s verification failed.", merchant_id)
        return result

    async def handle(self, job: VerificationJob) -> JobStatus | None:
        """Process one claimed job and report the outcome to the queue.

        Returns:
            The job's new status, or None if the lease was lost meanwhile.
        """
        try:
            result = await asyncio.wait_for(
                self.process_job(job), timeout=self.job_timeout_seconds
            )
        except Exception as e:
            error = str(e) or type(e).__name__
            if isinstance(e, TimeoutError):
                error = f"job timed out after {self.job_timeout_seconds}s"
            logger.error(
                "Job for merchant %s failed (attempt %s/%s): %s",
                job.merchant_id,
                job.attempts,
                job.max_attempts,
                error,
            )
            status = await self.queue.fail(job, error)
            if status is JobStatus.DEAD_LETTER:
                logger.error("Job %s for merchant %s moved to dead-letter", job.job_id, job.merchant_id)
            elif status is JobStatus.RETRY_SCHEDULED:
                logger.info("Job %s for merchant %s scheduled for retry", job.job_id, job.merchant_id)
            return status

        acked = await self.queue.ack(job, result.to_dict())
        if not acked:
            return None
        logger.info("Job %s for merchant %s completed", job.job_id, job.merchant_id)
        return JobStatus.COMPLETED

    async def run_once(self) -> bool:
        """Claim and handle at most one job.

        Returns:
            True if a job was handled, False if the queue had nothing ready.
        """
        job = await self.queue.dequeue(self.lease_seconds)
        if job is None:
            return False
        await self.handle(job)
        return True

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Consume jobs until stop_event is set (or the task is cancelled).

        Queue outages are logged and retried after the poll interval.
        """
        stop_event = stop_event or asyncio.Event()
        logger.info("Verification worker started (lease=%ss)", self.lease_seconds)
        while not stop_event.is_set():
            try:
                handled = await self.run_once()
            except Exception:
                logger.exception("Worker loop error; backing off")
                handled = False
            if not handled:
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval_seconds)
                except TimeoutError:
                    pass
        logger.info("Verification worker stopped")
