"""Tests for domain entities, enums, exceptions and the retry policy."""

import json

import pytest

from merchant_verification.domain.entities import VerificationJob, VerificationResult
from merchant_verification.domain.enums import JobStatus
from merchant_verification.domain.exceptions import (
    CacheUnavailableException,
    InvalidJobPayloadException,
    MerchantVerificationException,
    QueueUnavailableException,
)
from merchant_verification.infrastructure.queue.retry_policy import RetryPolicy


def test_base_exception_default_error_code() -> None:
    exc = MerchantVerificationException("Something failed")
    assert exc.error_code == "MerchantVerificationException"
    assert exc.to_dict() == {
        "error": "MerchantVerificationException",
        "message": "Something failed",
        "details": {},
    }


def test_infrastructure_exceptions_carry_context() -> None:
    cache_exc = CacheUnavailableException("get", "merchant_verification:M-1")
    assert cache_exc.error_code == "CACHE_UNAVAILABLE"
    assert cache_exc.details == {"operation": "get", "key": "merchant_verification:M-1"}

    queue_exc = QueueUnavailableException("enqueue")
    assert queue_exc.error_code == "QUEUE_UNAVAILABLE"
    assert "reason" not in queue_exc.details


def test_job_status_terminal_states() -> None:
    assert JobStatus.COMPLETED.is_terminal
    assert JobStatus.DEAD_LETTER.is_terminal
    assert not JobStatus.RETRY_SCHEDULED.is_terminal
    assert "in_flight" in JobStatus.values()


def test_result_wire_shape_omits_missing_message() -> None:
    assert VerificationResult(success=True, cached=True).to_dict() == {"success": True}


def test_job_record_payload_is_merchant_id_json() -> None:
    job = VerificationJob(job_id="j-1", merchant_id="M-001", max_attempts=5, enqueued_at=10.5)
    record = job.to_record()

    assert json.loads(record["payload"]) == {"merchantId": "M-001"}
    assert "lease_id" not in record

    restored = VerificationJob.from_record(record)
    assert restored.merchant_id == "M-001"
    assert restored.enqueued_at == 10.5
    assert restored.attempts_left == 5


@pytest.mark.parametrize(
    "payload",
    ["not json", json.dumps({"merchant": "M-001"}), json.dumps({"merchantId": ""}), "[]"],
)
def test_invalid_payload_is_rejected(payload: str) -> None:
    with pytest.raises(InvalidJobPayloadException) as exc_info:
        VerificationJob.from_record({"job_id": "j-1", "payload": payload})
    assert exc_info.value.details["job_id"] == "j-1"


def test_retry_policy_backoff_is_exponential_and_capped() -> None:
    policy = RetryPolicy(max_attempts=10, backoff_seconds=5.0, backoff_max_seconds=30.0)
    assert [policy.delay_for(n) for n in range(1, 6)] == [5.0, 10.0, 20.0, 30.0, 30.0]
    assert policy.should_retry(9)
    assert not policy.should_retry(10)
