"""Merchant submission API: queue a verification job for a merchant.

The request only enqueues; the verdict reaches the merchant later through
the notification channel. Poll GET /jobs/{job_id} for job status.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from merchant_verification.api.dependencies import get_job_queue
from merchant_verification.application.interfaces.services import IJobQueue
from merchant_verification.core.limiter import limit_submit
from merchant_verification.domain.exceptions import MerchantVerificationException
from merchant_verification.schemas.merchant import (
    MerchantSubmission,
    SubmissionAccepted,
    SubmissionErrorResponse,
    SubmissionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/submit",
    response_model=SubmissionResponse,
    status_code=202,
    responses={500: {"description": "Submission not accepted", "model": SubmissionErrorResponse}},
)
@limit_submit
async def submit_merchant(
    request: Request,
    queue: Annotated[IJobQueue, Depends(get_job_queue)],
) -> SubmissionResponse | JSONResponse:
    """Accept a merchant submission and queue its verification.

    Any failure (malformed body, queue unavailable) returns 500 with a
    generic message; details are logged, never returned.
    """
    merchant_id: str | None = None
    try:
        submission = MerchantSubmission.model_validate_json(await request.body())
        merchant_id = submission.merchant_id
        job = await queue.enqueue(merchant_id)
    except ValueError as e:
        logger.warning("Rejected merchant submission: %s", e)
        return JSONResponse(status_code=500, content=SubmissionErrorResponse().model_dump())
    except MerchantVerificationException as e:
        logger.error(
            "Could not queue verification for merchant %s: %s %s",
            merchant_id,
            e.error_code,
            e.details,
        )
        return JSONResponse(status_code=500, content=SubmissionErrorResponse().model_dump())
    except Exception:
        logger.exception("Unexpected error queueing verification for merchant %s", merchant_id)
        return JSONResponse(status_code=500, content=SubmissionErrorResponse().model_dump())

    return SubmissionResponse(
        data=SubmissionAccepted(
            job_id=job.job_id,
            merchant_id=job.merchant_id,
            status=job.status.value,
        )
    )
