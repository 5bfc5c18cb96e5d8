"""API router aggregation.

api_router serves every route at the root. pipeline_router holds the
submission and webhook routes only; main mounts it a second time under
/api for clients that call through that prefix.
"""

from fastapi import APIRouter

from merchant_verification.api.endpoints import health, jobs, merchant, webhook

pipeline_router = APIRouter()
pipeline_router.include_router(merchant.router, prefix="/merchant", tags=["merchant"])
pipeline_router.include_router(webhook.router, prefix="/webhook", tags=["webhook"])

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(pipeline_router)
