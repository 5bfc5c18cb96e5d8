"""Application configuration (settings and environment).

Single source of truth for API and worker configuration. Uses
pydantic-settings with .env support. Backend names and timeout/lease
relationships are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from merchant_verification.core.constants import VERIFICATION_CACHE_TTL_SECONDS

_CACHE_BACKENDS = ("redis", "memory")
_QUEUE_BACKENDS = ("redis", "memory")
_AUTHORITY_BACKENDS = ("mock", "http")
_NOTIFICATION_BACKENDS = ("log", "webhook")


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Defaults target local development: Redis on localhost, the mock
    verification authority and log-only notifications.
    """

    # App
    app_name: str = "merchant-verification"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    # Request tracing
    request_id_header: str = "X-Request-ID"

    # Redis (cache and queue share the connection settings)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_socket_timeout: float = 5.0

    # Backends: "redis" for shared cross-process storage, "memory" for a single process
    cache_backend: str = "redis"
    queue_backend: str = "redis"

    # Result cache
    verification_cache_ttl_seconds: int = VERIFICATION_CACHE_TTL_SECONDS

    # Job queue
    queue_name: str = "external-verification"
    job_lease_seconds: int = 60
    job_max_attempts: int = 5
    retry_backoff_seconds: float = 5.0
    retry_backoff_max_seconds: float = 300.0
    job_retention_seconds: int = 86_400

    # Worker
    worker_poll_interval_seconds: float = 1.0
    job_timeout_seconds: int = 45
    # Start a worker task inside the API process (useful with the memory backends)
    run_worker_in_process: bool = False

    # Verification authority: "mock" is a placeholder random decision
    verification_authority_backend: str = "mock"
    verification_authority_url: str | None = None
    verification_authority_api_key: SecretStr | None = None
    verification_timeout_seconds: float = 10.0
    mock_verification_success_rate: float = 0.7

    # Notification sink
    notification_backend: str = "log"
    notification_webhook_url: str | None = None
    notification_timeout_seconds: float = 5.0

    # Inbound webhook: if set, POST /webhook/external-verification must send
    # X-Webhook-Signature-256: sha256=<hex(hmac_sha256(secret, body))>.
    webhook_secret: SecretStr | None = None

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backends(self) -> "Settings":
        """Validate backend names and their required settings.

        - Unknown cache/queue/authority/notification backend names are rejected.
        - The http authority needs VERIFICATION_AUTHORITY_URL; the webhook
          notification sink needs NOTIFICATION_WEBHOOK_URL.
        - A job must time out before its lease expires, otherwise a second
          worker could claim a job that is still running.
        """
        for name, value, allowed in (
            ("cache_backend", self.cache_backend, _CACHE_BACKENDS),
            ("queue_backend", self.queue_backend, _QUEUE_BACKENDS),
            (
                "verification_authority_backend",
                self.verification_authority_backend,
                _AUTHORITY_BACKENDS,
            ),
            ("notification_backend", self.notification_backend, _NOTIFICATION_BACKENDS),
        ):
            if value.lower() not in allowed:
                raise ValueError(
                    f"{name} must be one of {', '.join(repr(a) for a in allowed)}, got: {value!r}"
                )
        if (
            self.verification_authority_backend.lower() == "http"
            and not self.verification_authority_url
        ):
            raise ValueError(
                "VERIFICATION_AUTHORITY_URL is required when "
                "verification_authority_backend is 'http'."
            )
        if (
            self.notification_backend.lower() == "webhook"
            and not self.notification_webhook_url
        ):
            raise ValueError(
                "NOTIFICATION_WEBHOOK_URL is required when notification_backend is 'webhook'."
            )
        if self.job_timeout_seconds >= self.job_lease_seconds:
            raise ValueError(
                f"job_timeout_seconds ({self.job_timeout_seconds}) must be shorter than "
                f"job_lease_seconds ({self.job_lease_seconds})."
            )
        if self.job_max_attempts < 1:
            raise ValueError("job_max_attempts must be at least 1.")
        if not 0.0 <= self.mock_verification_success_rate <= 1.0:
            raise ValueError("mock_verification_success_rate must be between 0.0 and 1.0.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    In tests, call get_settings.cache_clear() after changing env vars so the
    next get_settings() picks up the new values.
    """
    return Settings()
