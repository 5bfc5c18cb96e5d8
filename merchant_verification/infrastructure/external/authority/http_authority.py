"""HTTP client for an external merchant verification authority.

POST {base_url} with {"merchantId": ...}; the authority answers
{"verified": true|false}. Anything else (transport error, timeout,
non-2xx status, malformed body) means no verdict was obtained and is
raised as VerificationAuthorityException so it is retried, never cached.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import SecretStr

from merchant_verification.domain.exceptions import VerificationAuthorityException

logger = logging.getLogger(__name__)


class HttpVerificationAuthority:
    """Verification authority reached over HTTP with an explicit timeout."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: str,
        timeout_seconds: float = 10.0,
        api_key: SecretStr | None = None,
    ) -> None:
        """Initialize.

        Args:
            http_client: Shared AsyncClient (owned and closed by the process entry point).
            url: Authority endpoint.
            timeout_seconds: Per-request timeout so a stuck call cannot hold a job lease.
            api_key: Optional bearer token sent as Authorization header.
        """
        self.http_client = http_client
        self.url = url
        self.timeout = httpx.Timeout(timeout_seconds)
        self._api_key = api_key

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key is not None:
            headers["Authorization"] = f"Bearer {self._api_key.get_secret_value()}"
        return headers

    async def check(self, merchant_id: str) -> bool:
        """Ask the authority for a verdict.

        Raises:
            VerificationAuthorityException: No verdict could be obtained.
        """
        try:
            response = await self.http_client.post(
                self.url,
                json={"merchantId": merchant_id},
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as e:
            raise VerificationAuthorityException(merchant_id, "timeout") from e
        except httpx.HTTPStatusError as e:
            raise VerificationAuthorityException(
                merchant_id, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise VerificationAuthorityException(merchant_id, type(e).__name__) from e
        except ValueError as e:
            raise VerificationAuthorityException(merchant_id, "invalid JSON body") from e

        verified = body.get("verified") if isinstance(body, dict) else None
        if not isinstance(verified, bool):
            raise VerificationAuthorityException(merchant_id, "missing boolean 'verified'")
        logger.info("Authority verdict for %s: %s", merchant_id, verified)
        return verified
