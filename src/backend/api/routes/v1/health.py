"""Health endpoints: no auth, no rate limit."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.dependencies import DB, AppSettings
from models.schemas.health import DatabaseHealth, HealthResponse, LivenessResponse, ReadinessResponse
from utils.db_utils import check_pool_health
from utils.logger import logger

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health",
    description="Version, uptime, database pool occupancy and the configured notification transport.",
)
async def health_check(db: DB, request: Request, settings: AppSettings) -> HealthResponse:
    database = DatabaseHealth.from_pool_stats(await check_pool_health(db))
    started_at = getattr(request.app.state, "started_at", None)

    return HealthResponse(
        status="healthy" if database.healthy else "unhealthy",
        version=settings.app_version,
        environment=settings.app_env,
        uptime_seconds=round(time.monotonic() - started_at, 1) if started_at else None,
        database=database,
        notification_transport=settings.notification_transport,
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="200 once the database answers; 503 otherwise, so load balancers hold traffic back.",
    responses={503: {"model": ReadinessResponse, "description": "Database unavailable"}},
)
async def readiness_check(db: DB) -> ReadinessResponse | JSONResponse:
    stats = await check_pool_health(db)
    if stats["healthy"]:
        return ReadinessResponse(ready=True)
    logger.warning("Readiness check failed: database unavailable")
    return JSONResponse(
        status_code=503,
        content=ReadinessResponse(ready=False, error="Database unavailable").model_dump(),
    )


@router.get("/health/live", response_model=LivenessResponse, summary="Liveness check")
async def liveness_check() -> LivenessResponse:
    return LivenessResponse()
