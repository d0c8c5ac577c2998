"""
Database fixtures for testing.
Provides an in-memory database per test and the application context built on it.
"""

from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from listing_sync_service.clients.cache_client import CacheClient
from listing_sync_service.config import Settings
from listing_sync_service.context import AppContext, build_context
from listing_sync_service.db import build_session_factory, create_tables
from listing_sync_service.services.listing_service import ListingService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database with every table created."""
    # StaticPool keeps one connection so all sessions see the same database
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )
    await create_tables(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A plain session for assertions against table contents."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app_context(
    engine,
    test_settings: Settings,
    fake_redis,
    geocoder_stub,
    edge_cache_stub,
) -> AsyncGenerator[AppContext, None]:
    """Every component wired against the test database and stubbed externals."""
    cache = CacheClient(fake_redis, default_ttl=test_settings.LISTING_CACHE_TTL_SECONDS)
    context = build_context(
        test_settings,
        engine=engine,
        cache=cache,
        geocoding_http=geocoder_stub.client(),
        edge_http=edge_cache_stub.client(),
    )
    yield context
    await context.geocoder.aclose()
    await context.edge_cache.aclose()


@pytest_asyncio.fixture
async def listing_service(app_context) -> ListingService:
    return app_context.listing_service
