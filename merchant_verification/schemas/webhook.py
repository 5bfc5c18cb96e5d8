"""External verification webhook schemas."""

from pydantic import Field

from merchant_verification.schemas.merchant import MerchantIdentifier


class ExternalVerificationEvent(MerchantIdentifier):
    """Body of POST /webhook/external-verification.

    verified, when present, is the authority's new verdict; it replaces the
    cached outcome before the merchant is re-queued.
    """

    verified: bool | None = Field(default=None)
