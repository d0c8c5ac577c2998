import json
import logging
import re
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from listing_sync_service.config import Environment, settings

logger = logging.getLogger("listing_sync_service")

STRUCTURED_FIELDS = ("listing_id", "table", "stage", "request", "response")

LISTING_PATH = re.compile(r"/listings/(\d+)(?:/|$)")


def listing_id_from_path(path: str) -> Optional[int]:
    match = LISTING_PATH.search(path)
    return int(match.group(1)) if match else None


# Request ID context for correlating log entries from the same request
class RequestContext:
    """Request-scoped storage for the correlation id"""

    _request_id: Optional[str] = None

    @classmethod
    def get_request_id(cls) -> Optional[str]:
        return cls._request_id

    @classmethod
    def set_request_id(cls, request_id: str) -> None:
        cls._request_id = request_id

    @classmethod
    def clear_request_id(cls) -> None:
        cls._request_id = None


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID to each request"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        RequestContext.set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            RequestContext.clear_request_id()
        response.headers["X-Request-ID"] = request_id
        return response


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "environment": str(settings.ENVIRONMENT.value),
        }
        if request_id := RequestContext.get_request_id():
            log_record["request_id"] = request_id
        for key in STRUCTURED_FIELDS:
            if hasattr(record, key):
                log_record[key] = getattr(record, key)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging() -> None:
    """Install the root handler and levels."""
    log_level = getattr(logging, settings.LOGGING_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    if settings.ENVIRONMENT == Environment.PRODUCTION:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    root_logger.setLevel(log_level)

    logging.getLogger("listing_sync_service").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def setup_logging(app: FastAPI) -> None:
    """Configure logging and attach the request middlewares to the app"""
    configure_logging()

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    logger.info(
        f"Logging configured with level {settings.LOGGING_LEVEL} "
        f"and {'JSON' if settings.ENVIRONMENT == Environment.PRODUCTION else 'plain text'} format"
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log request and response information"""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in ["/health"]:
            return await call_next(request)

        start_time = time.time()
        request_info = {
            "method": request.method,
            "path": request.url.path,
            "client_host": request.client.host if request.client else None,
            "request_id": RequestContext.get_request_id(),
        }
        extra = {"request": request_info}
        listing_id = listing_id_from_path(request.url.path)
        if listing_id is not None:
            extra["listing_id"] = listing_id

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"Request failed: {e}", exc_info=True, extra=extra)
            raise

        duration_ms = (time.time() - start_time) * 1000
        extra["response"] = {
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}", extra=extra
        )
        return response
