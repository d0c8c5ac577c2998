"""
Main application entry point for the Listing Sync Service.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from listing_sync_service import __version__
from listing_sync_service.config import settings
from listing_sync_service.context import AppContext, build_context
from listing_sync_service.db import create_tables
from listing_sync_service.exceptions import ListingServiceError
from listing_sync_service.routers.geocoding_router import router as geocoding_router
from listing_sync_service.routers.health_router import router as health_router
from listing_sync_service.routers.listing_router import router as listing_router
from listing_sync_service.utils.logging_config import logger, setup_logging
from listing_sync_service.utils.rate_limiting import limiter


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the application context on startup and release it on shutdown."""
    logger.info("Application startup sequence initiated.")

    owns_context = getattr(app.state, "context", None) is None
    if owns_context:
        app.state.context = build_context(settings)
        if not settings.is_production():
            await create_tables(app.state.context.engine)

    app.state.startup_time = time.time()
    logger.info("Application startup complete.")

    yield

    logger.info("Application shutdown sequence initiated.")
    if owns_context:
        await app.state.context.aclose()
    logger.info("Application shutdown complete.")


def error_response(exc: ListingServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(include_details=settings.expose_error_details()),
    )


async def listing_error_handler(request: Request, exc: ListingServiceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation errors become field-level validation_failed responses."""
    field_errors = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        field_errors[".".join(location) or "body"] = error.get("msg", "Invalid value")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": {
                "code": "validation_failed",
                "message": "Validation failed",
                "details": field_errors,
            },
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Global exception handler for consistent error responses."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    error = {"code": "internal_error", "message": "Internal server error"}
    if settings.expose_error_details():
        error["details"] = f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=500, content={"success": False, "error": error})


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    app = FastAPI(
        title="Listing Sync Service",
        description=(
            "Creates, updates and archives exclusive property listings, "
            "fanning each write out across the denormalized listing tables."
        ),
        version=__version__,
        root_path=settings.ROOT_PATH,
        lifespan=lifespan,
    )
    if context is not None:
        app.state.context = context

    setup_logging(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(ListingServiceError, listing_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health_router)
    app.include_router(listing_router)
    app.include_router(geocoding_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "listing_sync_service.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development(),
        log_level=settings.LOGGING_LEVEL.lower(),
    )
