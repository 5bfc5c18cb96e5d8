"""Shared utilities."""

from merchant_verification.shared.utils.datetime import (
    epoch_now,
    from_timestamp_utc,
    utc_now,
)

__all__ = ["epoch_now", "from_timestamp_utc", "utc_now"]
