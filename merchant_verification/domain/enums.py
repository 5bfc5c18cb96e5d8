"""Domain enumerations for the merchant verification pipeline."""

from enum import Enum


class JobStatus(str, Enum):
    """Verification job lifecycle status.

    queued -> in_flight -> completed, or in_flight -> retry_scheduled -> queued,
    or in_flight -> dead_letter once the retry budget is spent.
    """

    QUEUED = "queued"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    RETRY_SCHEDULED = "retry_scheduled"
    DEAD_LETTER = "dead_letter"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings."""
        return [status.value for status in cls]

    @property
    def is_terminal(self) -> bool:
        """Return whether no further processing will happen for this job."""
        return self in (JobStatus.COMPLETED, JobStatus.DEAD_LETTER)
