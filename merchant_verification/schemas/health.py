"""Health check API schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")


class ReadinessResponse(BaseModel):
    """Response for GET /health/ready."""

    status: str = Field(default="ok", description="Readiness status")
    cache: bool = Field(default=True, description="Result cache reachable")
    queue: bool = Field(default=True, description="Job queue reachable")
    queue_stats: dict[str, int] | None = Field(default=None, description="Job counts by state")
