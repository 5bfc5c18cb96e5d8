"""Domain entities: verification job and verification result.

The job's wire payload is {"merchantId": ...}; everything else on the entity
is queue bookkeeping (status, attempts, lease). Records are flat string maps
so the same shape can live in a Redis hash or an in-memory dict.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from merchant_verification.domain.enums import JobStatus
from merchant_verification.domain.exceptions import InvalidJobPayloadException
from merchant_verification.shared.utils.datetime import from_timestamp_utc


@dataclass
class VerificationResult:
    """Outcome of verifying one merchant.

    success/message form the wire shape. cached marks a result served from the
    result cache; error marks an infrastructure or authority failure, which is
    not a verdict and is never cached.
    """

    success: bool
    message: str | None = None
    cached: bool = False
    error: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape {success, message?}."""
        data: dict[str, Any] = {"success": self.success}
        if self.message is not None:
            data["message"] = self.message
        return data


@dataclass
class VerificationJob:
    """A queued request to verify one merchant, plus its queue bookkeeping."""

    job_id: str
    merchant_id: str
    status: JobStatus = JobStatus.QUEUED
    attempts: int = 0
    max_attempts: int = 1
    enqueued_at: float = 0.0
    updated_at: float = 0.0
    lease_id: str | None = None
    lease_expires_at: float | None = None
    last_error: str | None = None
    result: dict[str, Any] | None = field(default=None)

    @property
    def payload(self) -> dict[str, str]:
        """Wire payload carried by the queue."""
        return {"merchantId": self.merchant_id}

    @property
    def enqueued_at_utc(self) -> datetime:
        return from_timestamp_utc(self.enqueued_at)

    @property
    def updated_at_utc(self) -> datetime:
        return from_timestamp_utc(self.updated_at)

    @property
    def attempts_left(self) -> int:
        """Deliveries remaining before the job is dead-lettered."""
        return max(self.max_attempts - self.attempts, 0)

    def to_record(self) -> dict[str, str]:
        """Serialize to a flat string map (Redis hash fields)."""
        record = {
            "job_id": self.job_id,
            "payload": json.dumps(self.payload),
            "status": self.status.value,
            "attempts": str(self.attempts),
            "max_attempts": str(self.max_attempts),
            "enqueued_at": repr(self.enqueued_at),
            "updated_at": repr(self.updated_at),
        }
        if self.lease_id is not None:
            record["lease_id"] = self.lease_id
        if self.lease_expires_at is not None:
            record["lease_expires_at"] = repr(self.lease_expires_at)
        if self.last_error is not None:
            record["last_error"] = self.last_error
        if self.result is not None:
            record["result"] = json.dumps(self.result)
        return record

    @classmethod
    def from_record(cls, record: dict[str, str]) -> VerificationJob:
        """Deserialize from a flat string map.

        Raises:
            InvalidJobPayloadException: If the payload is missing or has no merchantId.
        """
        job_id = record.get("job_id", "")
        try:
            payload = json.loads(record["payload"])
            merchant_id = payload["merchantId"]
        except (KeyError, TypeError, json.JSONDecodeError) as e:
            raise InvalidJobPayloadException(job_id, str(e)) from e
        if not isinstance(merchant_id, str) or not merchant_id:
            raise InvalidJobPayloadException(job_id, "merchantId must be a non-empty string")
        lease_expires_at = record.get("lease_expires_at")
        result = record.get("result")
        return cls(
            job_id=job_id,
            merchant_id=merchant_id,
            status=JobStatus(record.get("status", JobStatus.QUEUED.value)),
            attempts=int(record.get("attempts", 0)),
            max_attempts=int(record.get("max_attempts", 1)),
            enqueued_at=float(record.get("enqueued_at", 0.0)),
            updated_at=float(record.get("updated_at", 0.0)),
            lease_id=record.get("lease_id") or None,
            lease_expires_at=float(lease_expires_at) if lease_expires_at else None,
            last_error=record.get("last_error") or None,
            result=json.loads(result) if result else None,
        )
