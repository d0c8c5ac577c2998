"""
Integration tests for listing create, update, archive/delete and read flows.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from listing_sync_service.exceptions import NotFound, ValidationFailed
from listing_sync_service.models import ListingDetails, ListingLocation, ListingSequence, ListingSummary
from listing_sync_service.schemas.listing import Listing, ListingInput
from listing_sync_service.services.events import listing_view_key
from listing_sync_service.services.listing_service import merge_for_update
from tests.fixtures.helpers import create_listing

pytestmark = pytest.mark.integration


def update_input(**fields) -> ListingInput:
    return ListingInput.model_validate(fields)


class TestMergeForUpdate:
    def test_total_only_drops_stored_components(self):
        stored = Listing(bathrooms_full=1, bathrooms_half=1, bathrooms_total=1.5)
        merged = merge_for_update(stored, {"bathrooms_total": 3.0})
        assert merged.bathrooms_full is None
        assert merged.bathrooms_total == 3.0

    def test_acres_only_drops_stored_square_feet(self):
        stored = Listing(lot_size_acres=1.0, lot_size_square_feet=43560)
        merged = merge_for_update(stored, {"lot_size_acres": 2.0})
        assert merged.lot_size_square_feet is None

    def test_address_change_clears_coordinates(self):
        stored = Listing(street_number="10", latitude=42.5, longitude=-71.1)
        merged = merge_for_update(stored, {"street_number": "12"})
        assert merged.latitude is None

    def test_unchanged_address_keeps_coordinates(self):
        stored = Listing(street_number="10", latitude=42.5, longitude=-71.1)
        merged = merge_for_update(stored, {"street_number": "10", "list_price": 1.0})
        assert merged.latitude == 42.5

    def test_approximate_coordinates_are_cleared(self):
        stored = Listing(latitude=42.3601, longitude=-71.0589, coordinates_approximate=True)
        merged = merge_for_update(stored, {"list_price": 1.0})
        assert (merged.latitude, merged.longitude) == (None, None)

    def test_supplied_coordinates_are_exact(self):
        stored = Listing(latitude=42.3601, longitude=-71.0589, coordinates_approximate=True)
        merged = merge_for_update(stored, {"latitude": 42.51, "longitude": -71.11})
        assert merged.latitude == 42.51
        assert merged.coordinates_approximate is False

    def test_callers_cannot_set_approximate(self):
        data = update_input(coordinates_approximate=True, list_price=1)
        assert data.provided_fields() == {"list_price": 1.0}


class TestCreate:
    async def test_defaults_to_active(self, listing_service):
        view = await create_listing(listing_service)
        assert view.standard_status == "Active"
        assert view.created_by == "agent-1"

    async def test_invalid_input_allocates_nothing(self, listing_service, db_session):
        with pytest.raises(ValidationFailed) as exc_info:
            await listing_service.create(ListingInput.model_validate({"city": "Reading"}))
        assert "list_price" in exc_info.value.field_errors
        assert await db_session.scalar(select(func.count(ListingSequence.id))) == 0


class TestUpdate:
    async def test_supplied_fields_overlay_stored(self, listing_service):
        created = await create_listing(listing_service)

        view, archived = await listing_service.update(
            created.listing_id, update_input(list_price="$425,000")
        )

        assert archived is False
        assert view.list_price == 425000
        assert view.city == "Reading"
        assert view.property_sub_type == "Condominium"
        assert view.listing_key == created.listing_key
        assert view.original_list_price == 450000

    async def test_total_supplied_last_wins(self, listing_service):
        created = await create_listing(listing_service)

        view, _ = await listing_service.update(created.listing_id, update_input(bathrooms_total=3))

        assert (view.bathrooms_full, view.bathrooms_half, view.bathrooms_total) == (3, 0, 3.0)

    async def test_address_change_geocodes_again(self, listing_service, geocoder_stub):
        created = await create_listing(listing_service)
        geocoder_stub.results["12 Elm St, Reading, MA, 01867, USA"] = (42.53, -71.1)

        view, _ = await listing_service.update(created.listing_id, update_input(street_number="12"))

        assert (view.latitude, view.longitude) == (42.53, -71.1)
        assert view.unparsed_address == "12 Elm St, Reading, MA 01867"

    async def test_default_coordinates_are_resolved_again(self, listing_service, geocoder_stub):
        geocoder_stub.default = None
        created = await create_listing(listing_service)
        assert created.coordinates_approximate is True
        assert (created.latitude, created.longitude) == (42.3601, -71.0589)

        geocoder_stub.default = (42.5251, -71.0956)
        view, _ = await listing_service.update(created.listing_id, update_input(list_price=460000))

        assert (view.latitude, view.longitude) == (42.5251, -71.0956)
        assert view.coordinates_approximate is False
        assert geocoder_stub.queries("nominatim")[-1] == "10 Elm St, Reading, MA, 01867, USA"

    async def test_fallback_coordinates_stay_approximate(
        self, listing_service, geocoder_stub, session_factory
    ):
        geocoder_stub.results["10 Elm St, Reading, MA, 01867, USA"] = None
        created = await create_listing(listing_service)

        view, _ = await listing_service.update(created.listing_id, update_input(list_price=460000))

        assert view.coordinates_approximate is True
        async with session_factory() as session:
            location = await session.get(ListingLocation, created.listing_id)
        assert location.coordinates_approximate is True

    async def test_supplied_coordinates_replace_approximate(self, listing_service, geocoder_stub):
        geocoder_stub.default = None
        created = await create_listing(listing_service)
        requests_before = len(geocoder_stub.requests)

        view, _ = await listing_service.update(
            created.listing_id, update_input(latitude=42.51, longitude=-71.11)
        )

        assert (view.latitude, view.longitude) == (42.51, -71.11)
        assert view.coordinates_approximate is False
        assert len(geocoder_stub.requests) == requests_before

    async def test_other_fields_keep_stored_lot_size(self, listing_service, session_factory):
        created = await create_listing(listing_service, lot_size_square_feet=12000)

        await listing_service.update(created.listing_id, update_input(list_price=460000))

        async with session_factory() as session:
            details = await session.get(ListingDetails, created.listing_id)
        assert details.lot_size_square_feet == 12000
        assert details.lot_size_acres == 0.2755

    async def test_unknown_listing(self, listing_service):
        with pytest.raises(NotFound):
            await listing_service.update(999, update_input(list_price=1))

    async def test_invalid_update(self, listing_service):
        created = await create_listing(listing_service)
        with pytest.raises(ValidationFailed):
            await listing_service.update(created.listing_id, update_input(list_price=-5))


class TestStatusTransition:
    async def test_closing_archives_exactly_once(self, listing_service, app_context, monkeypatch):
        archive = AsyncMock()
        monkeypatch.setattr(app_context.archive_manager, "archive", archive)
        created = await create_listing(listing_service)

        _, archived = await listing_service.update(created.listing_id, update_input(status="Closed"))
        assert archived is True

        view, archived_again = await listing_service.update(
            created.listing_id, update_input(status="Closed")
        )
        assert archived_again is False
        assert archive.await_count == 1
        assert view.off_market_date is not None

    async def test_closed_listing_leaves_active_tables(self, listing_service, app_context):
        created = await create_listing(listing_service)

        await listing_service.update(created.listing_id, update_input(status="Closed"))

        assert await app_context.sync_engine.listing_exists(created.listing_id) is False
        with pytest.raises(NotFound):
            await listing_service.get(created.listing_id)

    async def test_other_transitions_do_not_archive(self, listing_service, app_context, monkeypatch):
        archive = AsyncMock()
        monkeypatch.setattr(app_context.archive_manager, "archive", archive)
        created = await create_listing(listing_service)

        await listing_service.update(created.listing_id, update_input(status="Pending"))

        archive.assert_not_awaited()


class TestArchiveOrDelete:
    async def test_archive(self, listing_service, app_context):
        created = await create_listing(listing_service)

        result = await listing_service.archive_or_delete(created.listing_id)

        assert result.archived is True
        assert await app_context.sync_engine.listing_exists(created.listing_id) is False

    async def test_hard_delete_removes_photos(self, listing_service, app_context):
        created = await create_listing(listing_service)
        await app_context.photo_store.add_photo(created.listing_id, "https://cdn.test/1.jpg")

        result = await listing_service.archive_or_delete(created.listing_id, archive=False)

        assert result.archived is False
        assert result.failed_tables == []
        assert await app_context.photo_store.get_photos(created.listing_id) == []

    async def test_unknown_listing(self, listing_service):
        with pytest.raises(NotFound):
            await listing_service.archive_or_delete(999)


class TestRead:
    async def test_public_view_hides_agent_remarks(self, listing_service):
        created = await create_listing(
            listing_service, private_remarks="Lockbox 1234", showing_instructions="Call first"
        )

        public = await listing_service.get(created.listing_id)
        agent = await listing_service.get(created.listing_id, role="agent")

        assert public.private_remarks is None
        assert public.showing_instructions is None
        assert agent.private_remarks == "Lockbox 1234"
        assert agent.showing_instructions == "Call first"

    async def test_views_are_cached_until_the_listing_changes(self, listing_service, fake_redis):
        created = await create_listing(listing_service)
        cache_key = f"listing_sync:{listing_view_key(created.listing_key, 'public')}"

        await listing_service.get(created.listing_id)
        assert cache_key in fake_redis.store

        await listing_service.update(created.listing_id, update_input(list_price=440000))
        assert cache_key not in fake_redis.store

        view = await listing_service.get(created.listing_id)
        assert view.list_price == 440000

    async def test_list_filters_and_paginates(self, listing_service, db_session):
        first = await create_listing(listing_service)
        second = await create_listing(listing_service, city="Wakefield", zip="01880")
        third = await create_listing(listing_service)
        db_session.add(ListingSummary(listing_id=2_000_000, listing_key="mls", city="Reading"))
        await db_session.commit()

        page = await listing_service.list(city="Reading", per_page=1)
        assert page.total == 2
        assert page.total_pages == 2
        assert [item.listing_id for item in page.items] == [third.listing_id]

        page_two = await listing_service.list(city="Reading", page=2, per_page=1)
        assert [item.listing_id for item in page_two.items] == [first.listing_id]

        everything = await listing_service.list()
        assert everything.total == 3
        assert second.listing_id in [item.listing_id for item in everything.items]

    async def test_list_hides_agent_remarks(self, listing_service):
        await create_listing(listing_service, private_remarks="Lockbox 1234")
        page = await listing_service.list()
        assert page.items[0].private_remarks is None

    async def test_sync_status(self, listing_service):
        created = await create_listing(listing_service)
        assert (await listing_service.sync_status(created.listing_id))["complete"] is True
        with pytest.raises(NotFound):
            await listing_service.sync_status(999)
