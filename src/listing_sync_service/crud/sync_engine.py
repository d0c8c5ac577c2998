"""
Transactional fan-out of a normalized listing into the six listing tables.

All table writes for one ``sync`` call share a single transaction. A failing
stage rolls everything back and surfaces as ``SyncFailed`` naming the table.
Cache invalidation happens through a ``ListingChanged`` event published
after commit.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from listing_sync_service.clients.geocoding_client import GeocodingClient, format_point
from listing_sync_service.crud.upsert import upsert_row
from listing_sync_service.exceptions import SyncFailed
from listing_sync_service.models import (
    ACTIVE_TABLES,
    ListingDetails,
    ListingFeatures,
    ListingFinancial,
    ListingLocation,
    ListingMedia,
    ListingRow,
    ListingSummary,
)
from listing_sync_service.schemas.geocoding import Address, GeocodeResult
from listing_sync_service.schemas.listing import TERMINAL_STATUS, Listing
from listing_sync_service.services.events import ListingChanged, ListingEventBus
from listing_sync_service.utils.logging_config import logger
from listing_sync_service.utils.normalizer import (
    build_unparsed_address,
    days_on_market,
    price_per_sqft,
    to_external_sub_type,
)
from listing_sync_service.utils.property_mapper import join_values

DEFAULT_STATUS = "Active"
DEFAULT_PROPERTY_TYPE = "Residential"
DEFAULT_EXCLUSIVE_TAG = "Exclusive"


@dataclass
class SyncContext:
    listing_id: int
    listing_key: str
    listing: Listing
    now: datetime
    today: date
    contract_date: date
    off_market_date: Optional[date]


@dataclass
class SyncResult:
    listing_id: int
    created: bool
    geocode: Optional[GeocodeResult] = None
    tables: List[str] = field(default_factory=list)


def mls_id_for(listing_id: int) -> str:
    return f"EXCL-{listing_id}"


class SyncEngine:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        geocoder: GeocodingClient,
        events: ListingEventBus,
    ):
        self.session_factory = session_factory
        self.geocoder = geocoder
        self.events = events
        # Write order; the first table decides insert vs update for the listing
        self.stages = (
            ("listings", self._write_listing),
            ("summary", self._write_summary),
            ("details", self._write_details),
            ("location", self._write_location),
            ("features", self._write_features),
            ("financial", self._write_financial),
        )

    async def sync(self, listing_id: int, listing: Listing, listing_key: str) -> SyncResult:
        """
        Upsert the listing into every table in one transaction.

        Raises:
            SyncFailed: a table write or the commit failed; nothing was written
        """
        now = datetime.now(timezone.utc)
        today = now.date()
        off_market_date = listing.off_market_date
        if listing.standard_status == TERMINAL_STATUS and off_market_date is None:
            off_market_date = today

        ctx = SyncContext(
            listing_id=listing_id,
            listing_key=listing_key,
            listing=listing,
            now=now,
            today=today,
            contract_date=listing.listing_contract_date or today,
            off_market_date=off_market_date,
        )
        result = SyncResult(listing_id=listing_id, created=False)

        async with self.session_factory() as session:
            stage = "begin"
            try:
                async with session.begin():
                    for stage, write in self.stages:
                        inserted = await write(session, ctx, result)
                        if stage == "listings":
                            result.created = inserted
                        result.tables.append(stage)
                    stage = "commit"
            except Exception as e:
                logger.error(
                    f"Sync of listing {listing_id} failed at {stage}: {e}",
                    exc_info=True,
                    extra={"listing_id": listing_id, "stage": stage},
                )
                raise SyncFailed(stage, e, listing_id=listing_id) from e

        logger.info(
            f"Listing {listing_id} {'created' if result.created else 'updated'} "
            f"across {len(result.tables)} tables"
        )
        await self.events.publish(
            ListingChanged(listing_id=listing_id, listing_key=listing_key, reason="sync")
        )
        return result

    async def _write_listing(self, session: AsyncSession, ctx: SyncContext, result: SyncResult) -> bool:
        listing = ctx.listing
        values = {
            "listing_key": ctx.listing_key,
            "standard_status": listing.standard_status or DEFAULT_STATUS,
            "list_price": listing.list_price,
            "property_type": listing.property_type or DEFAULT_PROPERTY_TYPE,
            "property_sub_type": to_external_sub_type(listing.property_sub_type),
            "public_remarks": listing.public_remarks,
            "private_remarks": listing.private_remarks,
            "showing_instructions": listing.showing_instructions,
            "virtual_tour_url_unbranded": listing.virtual_tour_url,
            "modification_timestamp": ctx.now,
            "off_market_date": ctx.off_market_date,
        }
        # Original price is fixed at insert unless the caller supplies one
        if listing.original_list_price is not None:
            values["original_list_price"] = listing.original_list_price
        insert_defaults = {
            "original_list_price": listing.list_price,
            "original_entry_timestamp": ctx.now,
            "created_by": listing.created_by,
        }
        return await upsert_row(session, ListingRow, ctx.listing_id, values, insert_defaults)

    async def _write_summary(self, session: AsyncSession, ctx: SyncContext, result: SyncResult) -> bool:
        listing = ctx.listing
        values = {
            "listing_key": ctx.listing_key,
            "mls_id": mls_id_for(ctx.listing_id),
            "exclusive_tag": listing.exclusive_tag or DEFAULT_EXCLUSIVE_TAG,
            "standard_status": listing.standard_status or DEFAULT_STATUS,
            "list_price": listing.list_price,
            "property_type": listing.property_type or DEFAULT_PROPERTY_TYPE,
            "property_sub_type": to_external_sub_type(listing.property_sub_type),
            "street_number": listing.street_number,
            "street_name": listing.street_name,
            "unit_number": listing.unit_number,
            "city": listing.city,
            "state_or_province": listing.state_or_province or "MA",
            "postal_code": listing.postal_code,
            "county": listing.county,
            "bedrooms_total": listing.bedrooms_total,
            "bathrooms_total": listing.bathrooms_total,
            "bathrooms_full": listing.bathrooms_full,
            "bathrooms_half": listing.bathrooms_half,
            "building_area_total": listing.building_area_total,
            "lot_size_acres": listing.lot_size_acres,
            "year_built": listing.year_built,
            "garage_spaces": listing.garage_spaces,
            "latitude": listing.latitude,
            "longitude": listing.longitude,
            "has_pool": bool(listing.has_pool),
            "has_fireplace": bool(listing.has_fireplace),
            "has_basement": bool(listing.has_basement),
            "has_hoa": bool(listing.has_hoa or listing.association_yn),
            "listing_contract_date": ctx.contract_date,
            "days_on_market": days_on_market(ctx.contract_date, ctx.today, ctx.off_market_date),
            "price_per_sqft": price_per_sqft(listing.list_price, listing.building_area_total),
            "modification_timestamp": ctx.now,
        }
        if listing.original_list_price is not None:
            values["original_list_price"] = listing.original_list_price
        insert_defaults = {
            "original_list_price": listing.list_price,
            "photo_count": 0,
        }
        return await upsert_row(session, ListingSummary, ctx.listing_id, values, insert_defaults)

    async def _write_details(self, session: AsyncSession, ctx: SyncContext, result: SyncResult) -> bool:
        listing = ctx.listing
        total = listing.bathrooms_total
        values = {
            "bedrooms_total": listing.bedrooms_total,
            "bathrooms_total_integer": int(total) if total is not None else None,
            "bathrooms_total_decimal": total,
            "bathrooms_full": listing.bathrooms_full,
            "bathrooms_half": listing.bathrooms_half,
            "building_area_total": listing.building_area_total,
            "living_area": listing.building_area_total,
            "lot_size_acres": listing.lot_size_acres,
            "lot_size_square_feet": listing.lot_size_square_feet,
            "year_built": listing.year_built,
            "garage_spaces": listing.garage_spaces,
            "fireplace_yn": bool(listing.has_fireplace),
            "architectural_style": listing.architectural_style,
            "stories_total": listing.stories_total,
            "heating": join_values(listing.heating),
            "cooling": join_values(listing.cooling),
            "heating_yn": bool(listing.heating_yn),
            "cooling_yn": bool(listing.cooling_yn),
            "flooring": join_values(listing.flooring),
            "laundry_features": join_values(listing.laundry_features),
            "basement": listing.basement,
            "interior_features": join_values(listing.interior_features),
            "appliances": join_values(listing.appliances),
            "construction_materials": join_values(listing.construction_materials),
            "roof": listing.roof,
            "foundation_details": listing.foundation_details,
            "parking_features": join_values(listing.parking_features),
            "parking_total": listing.parking_total,
        }
        return await upsert_row(session, ListingDetails, ctx.listing_id, values)

    async def _write_location(self, session: AsyncSession, ctx: SyncContext, result: SyncResult) -> bool:
        listing = ctx.listing
        if listing.has_coordinates:
            latitude, longitude = listing.latitude, listing.longitude
            approximate = bool(listing.coordinates_approximate)
        else:
            geocode = await self.geocoder.resolve_or_default(Address.from_listing(listing))
            result.geocode = geocode
            latitude, longitude, approximate = geocode.latitude, geocode.longitude, geocode.approximate

        values = {
            "street_number": listing.street_number,
            "street_name": listing.street_name,
            "unit_number": listing.unit_number,
            "city": listing.city,
            "state_or_province": listing.state_or_province or "MA",
            "postal_code": listing.postal_code,
            "county_or_parish": listing.county,
            "subdivision_name": listing.subdivision_name,
            "unparsed_address": build_unparsed_address(listing),
            "latitude": latitude,
            "longitude": longitude,
            "coordinates": format_point(latitude, longitude),
            "coordinates_approximate": approximate,
        }
        inserted = await upsert_row(session, ListingLocation, ctx.listing_id, values)

        if result.geocode is not None:
            # Mirror resolved coordinates onto the search table
            await session.execute(
                update(ListingSummary)
                .where(ListingSummary.listing_id == ctx.listing_id)
                .values(latitude=latitude, longitude=longitude)
            )
        return inserted

    async def _write_features(self, session: AsyncSession, ctx: SyncContext, result: SyncResult) -> bool:
        listing = ctx.listing
        values = {
            "pool_private_yn": bool(listing.has_pool),
            "waterfront_yn": bool(listing.waterfront_yn),
            "pets_allowed": listing.pet_friendly,
            "exterior_features": join_values(listing.exterior_features),
            "waterfront_features": join_values(listing.waterfront_features),
            "view_yn": bool(listing.view_yn),
            "view": join_values(listing.view),
        }
        return await upsert_row(session, ListingFeatures, ctx.listing_id, values)

    async def _write_financial(self, session: AsyncSession, ctx: SyncContext, result: SyncResult) -> bool:
        listing = ctx.listing
        values = {
            "tax_annual_amount": listing.tax_annual_amount,
            "tax_year": listing.tax_year,
            "association_yn": bool(listing.association_yn or listing.has_hoa),
            "association_fee": listing.association_fee,
            "association_fee_frequency": listing.association_fee_frequency,
            "association_fee_includes": join_values(listing.association_fee_includes),
        }
        return await upsert_row(session, ListingFinancial, ctx.listing_id, values)

    async def update_photo_info(
        self,
        session: AsyncSession,
        listing_id: int,
        main_photo_url: Optional[str],
        photo_count: int,
    ) -> None:
        """Refresh the media mirror inside the caller's transaction."""
        await session.execute(
            update(ListingSummary)
            .where(ListingSummary.listing_id == listing_id)
            .values(
                main_photo_url=main_photo_url,
                photo_count=photo_count,
                modification_timestamp=datetime.now(timezone.utc),
            )
        )

    async def delete(self, listing_id: int, listing_key: Optional[str] = None) -> List[str]:
        """
        Remove the listing from every active table and its media rows.

        Each table is deleted in its own transaction so one failure does not
        stop the rest.

        Returns:
            List[str]: tables whose delete failed
        """
        failed: List[str] = []
        for model in (*ACTIVE_TABLES, ListingMedia):
            table = model.__tablename__
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        await session.execute(delete(model).where(model.listing_id == listing_id))
            except SQLAlchemyError as e:
                logger.error(
                    f"Failed to delete listing {listing_id} from {table}: {e}",
                    extra={"listing_id": listing_id, "table": table},
                )
                failed.append(table)

        if listing_key:
            await self.events.publish(
                ListingChanged(listing_id=listing_id, listing_key=listing_key, reason="delete")
            )
        logger.info(f"Deleted listing {listing_id} ({len(failed)} table failure(s))")
        return failed

    async def listing_exists(self, listing_id: int) -> bool:
        async with self.session_factory() as session:
            found = await session.scalar(
                select(ListingSummary.listing_id).where(ListingSummary.listing_id == listing_id)
            )
        return found is not None

    async def get_sync_status(self, listing_id: int) -> Dict[str, Any]:
        """Per-table presence of the listing."""
        status: Dict[str, Any] = {}
        async with self.session_factory() as session:
            for model in ACTIVE_TABLES:
                found = await session.scalar(
                    select(model.listing_id).where(model.listing_id == listing_id)
                )
                status[model.__tablename__] = found is not None
        status["complete"] = all(status.values())
        return status
