"""Health check endpoints: liveness and readiness probes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from merchant_verification.api.dependencies import get_components
from merchant_verification.core.components import PipelineComponents
from merchant_verification.domain.exceptions import MerchantVerificationException
from merchant_verification.schemas.health import HealthResponse, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Cache or queue unreachable", "model": ReadinessResponse}},
)
async def readiness_check(
    components: Annotated[PipelineComponents, Depends(get_components)],
) -> ReadinessResponse | JSONResponse:
    """Return 200 when cache and queue answer; 503 otherwise."""
    try:
        report = await components.readiness()
    except MerchantVerificationException as e:
        logger.warning("Readiness check failed: %s", e.error_code)
        report = {"cache": False, "queue": False}
    if report["cache"] and report["queue"]:
        return ReadinessResponse(**report)
    return JSONResponse(
        status_code=503,
        content=ReadinessResponse(status="not_ready", **report).model_dump(),
    )
