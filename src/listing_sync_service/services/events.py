"""
Listing-changed events and the cache subscribers that consume them.

Events are published only after a write has committed. Subscriber failures
are logged and never reach the publisher.
"""

import asyncio
import json
import logging
from typing import Awaitable, Callable, List

from pydantic import BaseModel

from listing_sync_service.clients.cache_client import CacheClient, md5_hex
from listing_sync_service.clients.edge_cache_client import EdgeCacheClient

logger = logging.getLogger(__name__)

VIEW_ROLES = ("public", "agent")


class ListingChanged(BaseModel):
    listing_id: int
    listing_key: str
    reason: str


Subscriber = Callable[[ListingChanged], Awaitable[None]]


def listing_view_key(listing_key: str, role: str) -> str:
    return f"listing_detail:{md5_hex(f'{listing_key}_{role}')}"


def listing_query_keys(listing_id: int) -> List[str]:
    # Query caches may have been keyed with the id as int or as str
    return [
        f"listing_query:{md5_hex(json.dumps({'id': listing_id}))}",
        f"listing_query:{md5_hex(json.dumps({'id': str(listing_id)}))}",
    ]


def listing_url(site_url: str, listing_id: int) -> str:
    return f"{site_url.rstrip('/')}/property/{listing_id}/"


class ListingEventBus:
    def __init__(self, handler_timeout: float = 5.0):
        self.handler_timeout = handler_timeout
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    async def publish(self, event: ListingChanged) -> None:
        for subscriber in self._subscribers:
            name = getattr(subscriber, "__name__", type(subscriber).__name__)
            try:
                await asyncio.wait_for(subscriber(event), timeout=self.handler_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Subscriber {name} timed out handling {event.reason} "
                    f"for listing {event.listing_id}"
                )
            except Exception as e:
                logger.error(
                    f"Subscriber {name} failed handling {event.reason} "
                    f"for listing {event.listing_id}: {e}",
                    exc_info=True,
                )


class CacheInvalidator:
    """Drops every cached view of the listing."""

    def __init__(self, cache: CacheClient):
        self.cache = cache

    async def __call__(self, event: ListingChanged) -> None:
        keys = [listing_view_key(event.listing_key, role) for role in VIEW_ROLES]
        keys.extend(listing_query_keys(event.listing_id))
        await self.cache.delete(*keys)
        logger.debug(f"Invalidated cache for listing {event.listing_id}")


class EdgeCachePurger:
    """Purges the listing's public detail page from the edge cache."""

    def __init__(self, edge_cache: EdgeCacheClient, site_url: str):
        self.edge_cache = edge_cache
        self.site_url = site_url

    async def __call__(self, event: ListingChanged) -> None:
        if not self.edge_cache.enabled:
            return
        await self.edge_cache.purge([listing_url(self.site_url, event.listing_id)])
