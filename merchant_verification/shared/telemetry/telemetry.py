"""OpenTelemetry tracing for the API and worker processes.

Spans go to the console in development or to an OTLP collector (Jaeger
included, via its OTLP port). Each process calls init_telemetry() once at
startup and shutdown_telemetry() on exit; both are no-ops when
TELEMETRY_ENABLED is false.
"""

import logging
import threading

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from merchant_verification.core.config import Settings

logger = logging.getLogger(__name__)


def _build_exporter(exporter_type: str, otlp_endpoint: str | None) -> SpanExporter | None:
    """Return the span exporter for exporter_type; None means spans are not exported."""
    if exporter_type == "none":
        return None
    if exporter_type == "otlp":
        if otlp_endpoint:
            logger.info("Using OTLP span exporter: %s", otlp_endpoint)
            return OTLPSpanExporter(
                endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
            )
        logger.warning("TELEMETRY_OTLP_ENDPOINT not set; falling back to console exporter")
    elif exporter_type != "console":
        logger.warning("Unknown exporter type '%s', using console", exporter_type)
    return ConsoleSpanExporter()


class TelemetryConfig:
    """Tracer provider for one process plus its FastAPI/Redis instrumentation.

    service_name distinguishes the API from workers in the trace backend
    (init_telemetry appends "-worker" for the worker process).
    """

    def __init__(self, service_name: str, service_version: str, environment: str = "development") -> None:
        self.resource = Resource(
            attributes={
                SERVICE_NAME: service_name,
                SERVICE_VERSION: service_version,
                "deployment.environment": environment,
            }
        )
        self.tracer_provider: TracerProvider | None = None

    @property
    def service_name(self) -> str:
        return str(self.resource.attributes[SERVICE_NAME])

    def setup_telemetry(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> TracerProvider | None:
        """Create the tracer provider and install it globally.

        Sampling follows the parent span when there is one, so a request
        that is traced keeps all of its child spans.

        Returns:
            TracerProvider, or None if setup failed (the process runs untraced).
        """
        try:
            provider = TracerProvider(
                resource=self.resource,
                sampler=ParentBased(TraceIdRatioBased(sample_rate)),
            )
            exporter = _build_exporter(exporter_type, otlp_endpoint)
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(provider)
        except Exception as e:
            logger.exception("Failed to initialize telemetry: %s", e)
            return None
        self.tracer_provider = provider
        logger.info(
            "OpenTelemetry initialized: service=%s, exporter=%s, sample_rate=%s",
            self.service_name,
            exporter_type,
            sample_rate,
        )
        return provider

    def instrument_fastapi(self, app: FastAPI) -> None:
        """Trace HTTP requests, except health probes."""
        if self.tracer_provider is None:
            return
        try:
            FastAPIInstrumentor.instrument_app(
                app,
                tracer_provider=self.tracer_provider,
                excluded_urls="/health",
            )
            logger.info("FastAPI instrumentation enabled")
        except Exception as e:
            logger.exception("Failed to instrument FastAPI: %s", e)

    def instrument_redis(self) -> None:
        """Trace Redis commands and Lua script calls (cache and queue)."""
        if self.tracer_provider is None:
            return
        try:
            RedisInstrumentor().instrument(tracer_provider=self.tracer_provider)
            logger.info("Redis instrumentation enabled")
        except Exception as e:
            logger.exception("Failed to instrument Redis: %s", e)

    def shutdown(self) -> None:
        """Flush pending spans and stop the provider."""
        if self.tracer_provider is None:
            return
        try:
            self.tracer_provider.shutdown()
        except Exception as e:
            logger.exception("Error during telemetry shutdown: %s", e)


_telemetry: TelemetryConfig | None = None
_telemetry_lock = threading.RLock()


def get_telemetry() -> TelemetryConfig | None:
    """Return the process telemetry instance (set at startup)."""
    with _telemetry_lock:
        return _telemetry


def set_telemetry(telemetry: TelemetryConfig | None) -> None:
    global _telemetry
    with _telemetry_lock:
        _telemetry = telemetry


def init_telemetry(settings: Settings, service_suffix: str = "") -> TelemetryConfig | None:
    """Set up tracing and Redis instrumentation when telemetry is enabled.

    Call before building Redis clients so their commands are traced.

    Returns:
        The configured TelemetryConfig, or None when telemetry is disabled.
    """
    if not settings.telemetry_enabled:
        logger.debug("Telemetry disabled")
        return None
    telemetry = TelemetryConfig(
        service_name=f"{settings.app_name}{service_suffix}",
        service_version=settings.app_version,
        environment=settings.telemetry_environment,
    )
    provider = telemetry.setup_telemetry(
        exporter_type=settings.telemetry_exporter,
        otlp_endpoint=settings.telemetry_otlp_endpoint,
        sample_rate=settings.telemetry_sample_rate,
    )
    if provider is None:
        return None
    telemetry.instrument_redis()
    set_telemetry(telemetry)
    return telemetry


def shutdown_telemetry() -> None:
    """Flush and clear the process telemetry instance, if any."""
    telemetry = get_telemetry()
    if telemetry is not None:
        telemetry.shutdown()
        set_telemetry(None)
        logger.info("Telemetry shutdown complete")
