from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from listing_sync_service.config import Settings
from listing_sync_service.models import Base
from listing_sync_service.utils.logging_config import logger


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database."""
    database_url = settings.DATABASE_URL
    is_postgres = database_url.startswith("postgresql")
    is_cloud_db = settings.DATABASE_REQUIRE_SSL

    kwargs = {
        "echo": settings.LOGGING_LEVEL.upper() == "DEBUG",
        "pool_pre_ping": True,
    }
    if is_postgres:
        connect_args = {
            "application_name": "listing_sync_service",
            # psycopg v3 takes session settings through options
            "options": "-c timezone=UTC"
            + ("" if settings.is_testing() else " -c statement_timeout=30000"),
        }
        if is_cloud_db:
            connect_args["sslmode"] = "require"
        kwargs["connect_args"] = connect_args
        kwargs["poolclass"] = NullPool

    logger.info(
        f"Initializing database engine ({'Cloud' if is_cloud_db else 'Local'} "
        f"{'PostgreSQL' if is_postgres else database_url.split(':', 1)[0]})"
    )
    return create_async_engine(database_url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create missing tables; schema changes go through Alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a transactional, auto-closing database session.

    Commits when the handler finishes, rolls back on database errors and
    always closes the session.
    """
    session = request.app.state.context.session_factory()
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database transaction failed: {e}", exc_info=True)
        await session.rollback()
        raise
    finally:
        await session.close()
