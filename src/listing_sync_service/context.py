"""
Application context: every component built once from settings and handed to
its collaborators explicitly.
"""

from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from listing_sync_service.clients.cache_client import CacheClient
from listing_sync_service.clients.edge_cache_client import EdgeCacheClient
from listing_sync_service.clients.geocoding_client import GeocodingClient
from listing_sync_service.config import Settings
from listing_sync_service.crud.archive import ArchiveManager
from listing_sync_service.crud.formatter import ListingFormatter
from listing_sync_service.crud.id_allocator import IdAllocator
from listing_sync_service.crud.media import PhotoStore
from listing_sync_service.crud.sync_engine import SyncEngine
from listing_sync_service.db import build_engine, build_session_factory
from listing_sync_service.services.events import CacheInvalidator, EdgeCachePurger, ListingEventBus
from listing_sync_service.services.listing_service import ListingService


@dataclass
class AppContext:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    cache: CacheClient
    geocoder: GeocodingClient
    edge_cache: EdgeCacheClient
    events: ListingEventBus
    allocator: IdAllocator
    sync_engine: SyncEngine
    archive_manager: ArchiveManager
    photo_store: PhotoStore
    formatter: ListingFormatter
    listing_service: ListingService

    async def aclose(self) -> None:
        await self.geocoder.aclose()
        await self.edge_cache.aclose()
        await self.cache.close()
        await self.engine.dispose()


def build_context(
    settings: Settings,
    engine: Optional[AsyncEngine] = None,
    cache: Optional[CacheClient] = None,
    geocoding_http: Optional[httpx.AsyncClient] = None,
    edge_http: Optional[httpx.AsyncClient] = None,
) -> AppContext:
    """Wire the components; collaborators can be swapped in for tests."""
    engine = engine or build_engine(settings)
    session_factory = build_session_factory(engine)
    cache = cache or CacheClient.from_url(
        settings.REDIS_URL, default_ttl=settings.LISTING_CACHE_TTL_SECONDS
    )
    geocoder = GeocodingClient(settings, cache, http_client=geocoding_http)
    edge_cache = EdgeCacheClient(
        settings.EDGE_CACHE_PURGE_URL,
        token=settings.EDGE_CACHE_PURGE_TOKEN,
        http_client=edge_http,
    )

    events = ListingEventBus(handler_timeout=settings.EVENT_HANDLER_TIMEOUT_SECONDS)
    events.subscribe(CacheInvalidator(cache))
    events.subscribe(EdgeCachePurger(edge_cache, settings.SITE_URL))

    allocator = IdAllocator(session_factory, settings.EXTERNAL_ID_THRESHOLD)
    sync_engine = SyncEngine(session_factory, geocoder, events)
    archive_manager = ArchiveManager(session_factory, events)
    photo_store = PhotoStore(session_factory, sync_engine, events)
    formatter = ListingFormatter(settings.EXTERNAL_ID_THRESHOLD, settings.SITE_URL)
    listing_service = ListingService(
        settings=settings,
        session_factory=session_factory,
        allocator=allocator,
        sync_engine=sync_engine,
        archive_manager=archive_manager,
        photo_store=photo_store,
        formatter=formatter,
        cache=cache,
    )

    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        cache=cache,
        geocoder=geocoder,
        edge_cache=edge_cache,
        events=events,
        allocator=allocator,
        sync_engine=sync_engine,
        archive_manager=archive_manager,
        photo_store=photo_store,
        formatter=formatter,
        listing_service=listing_service,
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_listing_service(request: Request) -> ListingService:
    return request.app.state.context.listing_service
