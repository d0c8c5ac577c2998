"""
Unit tests for listing-changed events and their cache subscribers.
"""

import asyncio

import httpx
import pytest

from listing_sync_service.clients.cache_client import CacheClient
from listing_sync_service.clients.edge_cache_client import EdgeCacheClient
from listing_sync_service.services.events import (
    CacheInvalidator,
    EdgeCachePurger,
    ListingChanged,
    ListingEventBus,
    listing_query_keys,
    listing_url,
    listing_view_key,
)
from tests.fixtures.mocks import EdgeCacheStub


@pytest.fixture
def event() -> ListingChanged:
    return ListingChanged(listing_id=42, listing_key="abc123", reason="sync")


class TestKeys:
    def test_view_keys_differ_per_role(self):
        assert listing_view_key("abc123", "public") != listing_view_key("abc123", "agent")

    def test_query_keys_cover_int_and_str_ids(self):
        keys = listing_query_keys(42)
        assert len(keys) == 2
        assert len(set(keys)) == 2

    def test_listing_url(self):
        assert listing_url("https://listings.test/", 42) == "https://listings.test/property/42/"


class TestListingEventBus:
    async def test_subscribers_receive_event(self, event):
        received = []

        async def subscriber(changed):
            received.append(changed)

        bus = ListingEventBus()
        bus.subscribe(subscriber)
        await bus.publish(event)
        assert received == [event]

    async def test_failing_subscriber_does_not_stop_others(self, event):
        received = []

        async def broken(changed):
            raise RuntimeError("purge endpoint down")

        async def healthy(changed):
            received.append(changed.listing_id)

        bus = ListingEventBus()
        bus.subscribe(broken)
        bus.subscribe(healthy)
        await bus.publish(event)
        assert received == [42]

    async def test_slow_subscriber_times_out(self, event):
        async def slow(changed):
            await asyncio.sleep(5)

        bus = ListingEventBus(handler_timeout=0.01)
        bus.subscribe(slow)
        await bus.publish(event)


class TestCacheInvalidator:
    async def test_drops_every_view_of_the_listing(self, fake_redis, event):
        cache = CacheClient(fake_redis)
        for role in ("public", "agent"):
            await cache.set(listing_view_key("abc123", role), {"listing_id": 42})
        await cache.set(listing_view_key("other", "public"), {"listing_id": 7})

        await CacheInvalidator(cache)(event)

        assert list(fake_redis.store) == [f"listing_sync:{listing_view_key('other', 'public')}"]
        for key in listing_query_keys(42):
            assert f"listing_sync:{key}" in fake_redis.deleted


class TestEdgeCachePurger:
    async def test_purges_listing_page(self, event):
        stub = EdgeCacheStub()
        edge = EdgeCacheClient("https://edge.test/purge", http_client=stub.client())
        await EdgeCachePurger(edge, "https://listings.test")(event)
        assert stub.purged == [["https://listings.test/property/42/"]]
        await edge.aclose()

    async def test_disabled_without_endpoint(self, event):
        stub = EdgeCacheStub()
        edge = EdgeCacheClient(None, http_client=stub.client())
        await EdgeCachePurger(edge, "https://listings.test")(event)
        assert stub.purged == []
        await edge.aclose()

    async def test_purge_error_is_raised_to_the_bus(self, event):
        stub = EdgeCacheStub(status_code=500)
        edge = EdgeCacheClient("https://edge.test/purge", http_client=stub.client())
        with pytest.raises(httpx.HTTPStatusError):
            await edge.purge(["https://listings.test/property/42/"])

        bus = ListingEventBus()
        bus.subscribe(EdgeCachePurger(edge, "https://listings.test"))
        await bus.publish(event)
        await edge.aclose()
