"""
Read-side re-join of the listing tables into one flat ``ListingView``.
"""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from listing_sync_service.models import (
    ListingDetails,
    ListingFeatures,
    ListingFinancial,
    ListingLocation,
    ListingMedia,
    ListingRow,
    ListingSummary,
)
from listing_sync_service.schemas.views import ListingView, PhotoView
from listing_sync_service.services.events import listing_url
from listing_sync_service.utils.normalizer import SQFT_PER_ACRE
from listing_sync_service.utils.property_mapper import row_to_dict, to_list


def first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


class ListingFormatter:
    """
    Builds listing views. Any subset of the tables may be missing a row;
    the view then carries nulls for that table's fields.
    """

    def __init__(self, external_id_threshold: int, site_url: str):
        self.external_id_threshold = external_id_threshold
        self.site_url = site_url

    async def format(self, session: AsyncSession, listing_id: int) -> Optional[ListingView]:
        """Return the view, or None if no table has a row for the id."""
        listing = row_to_dict(await session.get(ListingRow, listing_id))
        summary = row_to_dict(await session.get(ListingSummary, listing_id))
        details = row_to_dict(await session.get(ListingDetails, listing_id))
        location = row_to_dict(await session.get(ListingLocation, listing_id))
        features = row_to_dict(await session.get(ListingFeatures, listing_id))
        financial = row_to_dict(await session.get(ListingFinancial, listing_id))

        if not any((listing, summary, details, location, features, financial)):
            return None

        photos = (
            await session.execute(
                select(ListingMedia)
                .where(ListingMedia.listing_id == listing_id, ListingMedia.source_table == "active")
                .order_by(ListingMedia.order_index, ListingMedia.id)
            )
        ).scalars().all()

        acres = first(details.get("lot_size_acres"), summary.get("lot_size_acres"))
        lot_sqft = round(acres * SQFT_PER_ACRE) if acres else details.get("lot_size_square_feet")

        return ListingView(
            listing_id=listing_id,
            listing_key=first(listing.get("listing_key"), summary.get("listing_key")),
            mls_id=summary.get("mls_id"),
            is_exclusive=listing_id < self.external_id_threshold,
            exclusive_tag=summary.get("exclusive_tag"),
            url=listing_url(self.site_url, listing_id),
            standard_status=first(listing.get("standard_status"), summary.get("standard_status")),
            property_type=first(listing.get("property_type"), summary.get("property_type")),
            property_sub_type=first(listing.get("property_sub_type"), summary.get("property_sub_type")),
            list_price=first(listing.get("list_price"), summary.get("list_price")),
            original_list_price=first(
                listing.get("original_list_price"), summary.get("original_list_price")
            ),
            price_per_sqft=summary.get("price_per_sqft"),
            days_on_market=summary.get("days_on_market"),
            street_number=first(location.get("street_number"), summary.get("street_number")),
            street_name=first(location.get("street_name"), summary.get("street_name")),
            unit_number=first(location.get("unit_number"), summary.get("unit_number")),
            city=first(location.get("city"), summary.get("city")),
            state_or_province=first(
                location.get("state_or_province"), summary.get("state_or_province")
            ),
            postal_code=first(location.get("postal_code"), summary.get("postal_code")),
            county=first(location.get("county_or_parish"), summary.get("county")),
            subdivision_name=location.get("subdivision_name"),
            unparsed_address=location.get("unparsed_address"),
            latitude=first(location.get("latitude"), summary.get("latitude")),
            longitude=first(location.get("longitude"), summary.get("longitude")),
            coordinates_approximate=bool(location.get("coordinates_approximate")),
            bedrooms_total=first(details.get("bedrooms_total"), summary.get("bedrooms_total")),
            bathrooms_total=first(
                details.get("bathrooms_total_decimal"), summary.get("bathrooms_total")
            ),
            bathrooms_full=first(details.get("bathrooms_full"), summary.get("bathrooms_full")),
            bathrooms_half=first(details.get("bathrooms_half"), summary.get("bathrooms_half")),
            building_area_total=first(
                details.get("building_area_total"), summary.get("building_area_total")
            ),
            lot_size_acres=acres,
            lot_size_square_feet=lot_sqft,
            year_built=first(details.get("year_built"), summary.get("year_built")),
            garage_spaces=first(details.get("garage_spaces"), summary.get("garage_spaces")),
            stories_total=details.get("stories_total"),
            parking_total=details.get("parking_total"),
            architectural_style=details.get("architectural_style"),
            basement=details.get("basement"),
            roof=details.get("roof"),
            foundation_details=details.get("foundation_details"),
            has_pool=bool(first(features.get("pool_private_yn"), summary.get("has_pool"))),
            has_fireplace=bool(first(details.get("fireplace_yn"), summary.get("has_fireplace"))),
            has_basement=bool(summary.get("has_basement")),
            has_hoa=bool(first(financial.get("association_yn"), summary.get("has_hoa"))),
            pet_friendly=features.get("pets_allowed"),
            waterfront_yn=bool(features.get("waterfront_yn")),
            view_yn=bool(features.get("view_yn")),
            heating_yn=bool(details.get("heating_yn")),
            cooling_yn=bool(details.get("cooling_yn")),
            association_yn=bool(financial.get("association_yn")),
            heating=to_list(details.get("heating")),
            cooling=to_list(details.get("cooling")),
            interior_features=to_list(details.get("interior_features")),
            appliances=to_list(details.get("appliances")),
            flooring=to_list(details.get("flooring")),
            laundry_features=to_list(details.get("laundry_features")),
            construction_materials=to_list(details.get("construction_materials")),
            exterior_features=to_list(features.get("exterior_features")),
            waterfront_features=to_list(features.get("waterfront_features")),
            view=to_list(features.get("view")),
            parking_features=to_list(details.get("parking_features")),
            association_fee_includes=to_list(financial.get("association_fee_includes")),
            public_remarks=listing.get("public_remarks"),
            private_remarks=listing.get("private_remarks"),
            showing_instructions=listing.get("showing_instructions"),
            virtual_tour_url=listing.get("virtual_tour_url_unbranded"),
            tax_annual_amount=financial.get("tax_annual_amount"),
            tax_year=financial.get("tax_year"),
            association_fee=financial.get("association_fee"),
            association_fee_frequency=financial.get("association_fee_frequency"),
            listing_contract_date=summary.get("listing_contract_date"),
            off_market_date=listing.get("off_market_date"),
            original_entry_timestamp=listing.get("original_entry_timestamp"),
            modification_timestamp=first(
                listing.get("modification_timestamp"), summary.get("modification_timestamp")
            ),
            created_by=listing.get("created_by"),
            main_photo_url=summary.get("main_photo_url"),
            photo_count=summary.get("photo_count") or 0,
            photos=[
                PhotoView(
                    id=photo.id,
                    url=photo.media_url,
                    sort_order=photo.order_index,
                    is_primary=index == 0,
                )
                for index, photo in enumerate(photos)
            ],
        )
