"""Verification job status API."""

from typing import Annotated

from fastapi import APIRouter, Depends

from merchant_verification.api.dependencies import get_job_queue
from merchant_verification.application.interfaces.services import IJobQueue
from merchant_verification.domain.exceptions import JobNotFoundException
from merchant_verification.schemas.job import JobStatusResponse

router = APIRouter()


@router.get("/{job_id}", response_model=JobStatusResponse)
async def get_job_status(
    job_id: str,
    queue: Annotated[IJobQueue, Depends(get_job_queue)],
) -> JobStatusResponse:
    """Get status, attempts and result of a verification job."""
    job = await queue.get(job_id)
    if job is None:
        raise JobNotFoundException(job_id)
    return JobStatusResponse.from_job(job)
