"""Health and readiness endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from storefront.middleware.route import PipelineRoute
from storefront.store import redis as redis_store

logger = structlog.get_logger()
router = APIRouter(route_class=PipelineRoute)


@router.get("/health")
async def health():
    """Health check: status of the service and its store."""
    redis_status = await redis_store.ping()

    return {
        "status": "healthy" if redis_status == redis_store.STATUS_UP else "degraded",
        "api": "up",
        "redis": redis_status,
    }


@router.get("/ready")
async def ready():
    """Readiness check: 200 only when the store answers."""
    redis_status = await redis_store.ping()

    if redis_status == redis_store.STATUS_UP:
        return {"status": "ready"}

    logger.warning("not_ready", redis=redis_status)
    return JSONResponse(
        status_code=503,
        content={"status": "not_ready", "redis": redis_status},
    )
