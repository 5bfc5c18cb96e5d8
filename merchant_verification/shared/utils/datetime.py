"""
UTC datetime utilities for consistent timezone handling.

Queue bookkeeping stores Unix timestamps (seconds); convert at the edges
with these helpers instead of datetime.fromtimestamp() or datetime.utcnow().
"""

import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def epoch_now() -> float:
    """Return the current Unix timestamp in seconds (wall clock, shared across hosts)."""
    return time.time()


def from_timestamp_utc(timestamp: float) -> datetime:
    """
    Create a UTC-aware datetime from a Unix timestamp.
    Use instead of datetime.fromtimestamp() which returns naive local time.

    Args:
        timestamp: Unix timestamp (seconds since epoch)

    Returns:
        UTC-aware datetime
    """
    return datetime.fromtimestamp(timestamp, tz=UTC)
