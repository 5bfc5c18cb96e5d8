"""Tracing helpers: span decorator and attribute helpers."""

from collections.abc import Callable
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


def _identity_attributes(args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, str | int]:
    """Pull merchant/job identifiers from a method's call arguments.

    The first argument after self is either a merchant id or a
    VerificationJob. Other arguments are never copied onto spans.
    """
    first = args[1] if len(args) > 1 else None
    merchant_id = kwargs.get("merchant_id", first)
    job = kwargs.get("job", first)
    found: dict[str, str | int] = {}
    if isinstance(merchant_id, str):
        found["merchant.id"] = merchant_id
    if isinstance(getattr(job, "job_id", None), str):
        found["job.id"] = job.job_id
        found["merchant.id"] = job.merchant_id
        found["job.attempts"] = job.attempts
    return found


def traced(
    operation_name: str | None = None,
    attributes: dict | None = None,
) -> Callable:
    """Decorator that runs an async method inside a span.

    Merchant and job identifiers found in the arguments are set as span
    attributes. Exceptions are recorded on the span and re-raised.

    Args:
        operation_name: Span name (defaults to module.funcname).
        attributes: Optional static attributes for every span.
    """

    def decorator(func: Callable) -> Callable:
        tracer = trace.get_tracer(func.__module__)
        span_name = operation_name or f"{func.__module__}.{func.__name__}"

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(span_name) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                for key, value in _identity_attributes(args, kwargs).items():
                    span.set_attribute(key, value)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)
