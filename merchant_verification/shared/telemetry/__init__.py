"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from merchant_verification.shared.telemetry.logging import get_logger, setup_logging
from merchant_verification.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    init_telemetry,
    set_telemetry,
    shutdown_telemetry,
)
from merchant_verification.shared.telemetry.tracing import add_span_attributes, traced

__all__ = [
    "setup_logging",
    "get_logger",
    "TelemetryConfig",
    "get_telemetry",
    "set_telemetry",
    "init_telemetry",
    "shutdown_telemetry",
    "traced",
    "add_span_attributes",
]
