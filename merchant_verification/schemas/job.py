"""Verification job status schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from merchant_verification.domain.entities import VerificationJob


class JobStatusResponse(BaseModel):
    """Response for GET /jobs/{job_id}."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId")
    merchant_id: str = Field(..., alias="merchantId")
    status: str
    attempts: int
    max_attempts: int = Field(..., alias="maxAttempts")
    enqueued_at: datetime = Field(..., alias="enqueuedAt")
    updated_at: datetime = Field(..., alias="updatedAt")
    last_error: str | None = Field(default=None, alias="lastError")
    result: dict[str, Any] | None = None

    @classmethod
    def from_job(cls, job: VerificationJob) -> "JobStatusResponse":
        return cls(
            job_id=job.job_id,
            merchant_id=job.merchant_id,
            status=job.status.value,
            attempts=job.attempts,
            max_attempts=job.max_attempts,
            enqueued_at=job.enqueued_at_utc,
            updated_at=job.updated_at_utc,
            last_error=job.last_error,
            result=job.result,
        )
