"""
Unit tests for structured request logging.
"""

import json
import logging

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from listing_sync_service.utils.logging_config import (
    JsonFormatter,
    LoggingMiddleware,
    listing_id_from_path,
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "listing_sync_service", logging.INFO, __file__, 1, "GET /listings/3 -> 200", None, None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest_asyncio.fixture
async def logged_client():
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)

    @app.get("/listings/{listing_id}")
    async def read_listing(listing_id: int):
        return {"listing_id": listing_id}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def test_listing_id_from_path():
    assert listing_id_from_path("/listings/42") == 42
    assert listing_id_from_path("/api/v1/listings/42/photos/order") == 42
    assert listing_id_from_path("/listings") is None
    assert listing_id_from_path("/listings/abc") is None


class TestJsonFormatter:
    def test_request_and_response_are_emitted(self):
        record = make_record(
            listing_id=3,
            request={"method": "GET", "path": "/listings/3", "client_host": None, "request_id": "r-1"},
            response={"status_code": 200, "duration_ms": 1.5},
        )

        payload = json.loads(JsonFormatter().format(record))

        assert payload["listing_id"] == 3
        assert payload["request"]["method"] == "GET"
        assert payload["response"] == {"status_code": 200, "duration_ms": 1.5}

    def test_absent_fields_are_omitted(self):
        payload = json.loads(JsonFormatter().format(make_record(stage="location")))
        assert payload["stage"] == "location"
        assert "request" not in payload
        assert "listing_id" not in payload


class TestLoggingMiddleware:
    async def test_request_is_logged_with_structured_fields(self, logged_client, caplog):
        caplog.set_level(logging.INFO, logger="listing_sync_service")

        response = await logged_client.get("/listings/7")

        assert response.status_code == 200
        record = next(r for r in caplog.records if hasattr(r, "response"))
        assert record.listing_id == 7
        assert record.request["method"] == "GET"
        assert record.request["path"] == "/listings/7"
        assert record.response["status_code"] == 200
        assert record.response["duration_ms"] >= 0
