"""External verification webhook: the authority (or another system) asks for a re-check.

If WEBHOOK_SECRET is set, callers must send
X-Webhook-Signature-256: sha256=<hmac_sha256(secret, body)>.
"""

import hashlib
import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from merchant_verification.api.dependencies import get_components
from merchant_verification.core.components import PipelineComponents
from merchant_verification.core.config import get_settings
from merchant_verification.core.limiter import limit_webhook
from merchant_verification.domain.exceptions import MerchantVerificationException
from merchant_verification.schemas.webhook import ExternalVerificationEvent

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "X-Webhook-Signature-256"


def _verify_webhook_signature(body: bytes, signature_header: str | None, secret: str) -> bool:
    """Return True if the signature header matches HMAC-SHA256(secret, body)."""
    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature_header[7:].strip(), expected)


@router.post("/external-verification", response_class=PlainTextResponse)
@limit_webhook
async def external_verification_webhook(
    request: Request,
    components: Annotated[PipelineComponents, Depends(get_components)],
) -> PlainTextResponse:
    """Queue verification for the merchant named in the event.

    A "verified" flag in the body replaces the cached outcome first, so the
    queued job reports the authority's new verdict instead of a stale one.
    """
    body = await request.body()
    secret = get_settings().webhook_secret
    if secret is not None and not _verify_webhook_signature(
        body, request.headers.get(SIGNATURE_HEADER), secret.get_secret_value()
    ):
        raise HTTPException(status_code=401, detail="Invalid or missing webhook signature")

    merchant_id: str | None = None
    try:
        event = ExternalVerificationEvent.model_validate_json(body)
        merchant_id = event.merchant_id
        if event.verified is not None:
            await components.cache.set(merchant_id, event.verified)
            logger.info("Webhook verdict for merchant %s: %s", merchant_id, event.verified)
        job = await components.queue.enqueue(merchant_id)
    except ValueError as e:
        logger.warning("Rejected verification webhook: %s", e)
        return PlainTextResponse("Webhook processing failed", status_code=500)
    except MerchantVerificationException as e:
        logger.error(
            "Webhook processing failed for merchant %s: %s %s",
            merchant_id,
            e.error_code,
            e.details,
        )
        return PlainTextResponse("Webhook processing failed", status_code=500)

    logger.info("Webhook queued job %s for merchant %s", job.job_id, merchant_id)
    return PlainTextResponse("OK", status_code=200)
