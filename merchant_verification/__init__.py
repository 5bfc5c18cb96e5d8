"""Merchant verification: submission API, job queue, worker, result cache and notifications."""

__version__ = "1.0.0"
