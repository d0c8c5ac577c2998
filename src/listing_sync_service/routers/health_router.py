"""
Health check endpoints for monitoring service status.
"""

import time

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from listing_sync_service import __version__
from listing_sync_service.context import AppContext, get_context
from listing_sync_service.db import get_db
from listing_sync_service.schemas.common import ComponentHealth, HealthCheckResponse, HealthStatus
from listing_sync_service.utils.logging_config import logger

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    request: Request,
    db: AsyncSession = Depends(get_db),
    context: AppContext = Depends(get_context),
) -> HealthCheckResponse:
    """
    Basic health check endpoint for the service.
    Reports database and cache connectivity plus geocoder configuration.
    """
    components = {"api": ComponentHealth(status=HealthStatus.OK)}
    overall = HealthStatus.OK

    try:
        row = (await db.execute(text("SELECT 1"))).scalar()
        if row == 1:
            components["database"] = ComponentHealth(status=HealthStatus.OK)
        else:
            components["database"] = ComponentHealth(
                status=HealthStatus.ERROR,
                message="Database query returned unexpected result",
            )
            overall = HealthStatus.ERROR
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        components["database"] = ComponentHealth(
            status=HealthStatus.ERROR, message=f"Database connection error: {str(e)}"
        )
        overall = HealthStatus.ERROR

    try:
        await context.cache.ping()
        components["cache"] = ComponentHealth(status=HealthStatus.OK)
    except Exception as e:
        # Reads and geocoding degrade to uncached without redis
        logger.warning(f"Cache health check failed: {str(e)}")
        components["cache"] = ComponentHealth(
            status=HealthStatus.DEGRADED, message=f"Cache unavailable: {str(e)}"
        )
        if overall == HealthStatus.OK:
            overall = HealthStatus.DEGRADED

    components["geocoding"] = ComponentHealth(
        status=HealthStatus.OK, details=context.geocoder.diagnostics()
    )

    startup_time = getattr(request.app.state, "startup_time", None)
    return HealthCheckResponse(
        status=overall,
        version=__version__,
        components=components,
        uptime_seconds=time.time() - startup_time if startup_time else None,
    )
