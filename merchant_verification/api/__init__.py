"""HTTP API: routers, endpoints and dependencies."""

from merchant_verification.api.router import api_router, pipeline_router

__all__ = ["api_router", "pipeline_router"]
