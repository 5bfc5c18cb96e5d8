"""Merchant submission API schemas.

Wire field names are camelCase (merchantId, jobId) to match the onboarding
frontend; Python attributes are snake_case.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from merchant_verification.core.constants import CACHE_KEY_SEP


class MerchantIdentifier(BaseModel):
    """Base for payloads that carry a merchant identifier."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    merchant_id: str = Field(..., alias="merchantId", min_length=1, max_length=128)

    @field_validator("merchant_id")
    @classmethod
    def validate_merchant_id(cls, value: str) -> str:
        """Strip whitespace and reject the cache key separator."""
        value = value.strip()
        if not value:
            raise ValueError("merchantId must not be blank")
        if CACHE_KEY_SEP in value:
            raise ValueError(f"merchantId must not contain {CACHE_KEY_SEP!r}")
        return value


class MerchantSubmission(MerchantIdentifier):
    """Request body for POST /merchant/submit. Other profile fields are ignored."""

    name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None


class SubmissionAccepted(BaseModel):
    """Job reference returned when a submission is queued."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId")
    merchant_id: str = Field(..., alias="merchantId")
    status: str


class SubmissionResponse(BaseModel):
    """Response for POST /merchant/submit (202 Accepted)."""

    success: bool = True
    data: SubmissionAccepted


class SubmissionErrorResponse(BaseModel):
    """Response for POST /merchant/submit on failure (500)."""

    success: bool = False
    message: str = "Server Error"
