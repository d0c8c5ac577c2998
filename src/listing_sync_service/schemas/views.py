"""
Read-side response schemas.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PhotoView(BaseModel):
    id: int
    url: str
    sort_order: int
    is_primary: bool


class ListingView(BaseModel):
    """Flat view of a listing; absent values are explicit nulls."""

    listing_id: int
    listing_key: Optional[str] = None
    mls_id: Optional[str] = None
    is_exclusive: bool = True
    exclusive_tag: Optional[str] = None
    url: str

    standard_status: Optional[str] = None
    property_type: Optional[str] = None
    property_sub_type: Optional[str] = None
    list_price: Optional[float] = None
    original_list_price: Optional[float] = None
    price_per_sqft: Optional[float] = None
    days_on_market: Optional[int] = None

    street_number: Optional[str] = None
    street_name: Optional[str] = None
    unit_number: Optional[str] = None
    city: Optional[str] = None
    state_or_province: Optional[str] = None
    postal_code: Optional[str] = None
    county: Optional[str] = None
    subdivision_name: Optional[str] = None
    unparsed_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    coordinates_approximate: bool = False

    bedrooms_total: Optional[int] = None
    bathrooms_total: Optional[float] = None
    bathrooms_full: Optional[int] = None
    bathrooms_half: Optional[int] = None
    building_area_total: Optional[int] = None
    lot_size_acres: Optional[float] = None
    lot_size_square_feet: Optional[int] = None
    year_built: Optional[int] = None
    garage_spaces: Optional[int] = None
    stories_total: Optional[int] = None
    parking_total: Optional[int] = None
    architectural_style: Optional[str] = None
    basement: Optional[str] = None
    roof: Optional[str] = None
    foundation_details: Optional[str] = None

    has_pool: bool = False
    has_fireplace: bool = False
    has_basement: bool = False
    has_hoa: bool = False
    pet_friendly: Optional[bool] = None
    waterfront_yn: bool = False
    view_yn: bool = False
    heating_yn: bool = False
    cooling_yn: bool = False
    association_yn: bool = False

    heating: Optional[List[str]] = None
    cooling: Optional[List[str]] = None
    interior_features: Optional[List[str]] = None
    appliances: Optional[List[str]] = None
    flooring: Optional[List[str]] = None
    laundry_features: Optional[List[str]] = None
    construction_materials: Optional[List[str]] = None
    exterior_features: Optional[List[str]] = None
    waterfront_features: Optional[List[str]] = None
    view: Optional[List[str]] = None
    parking_features: Optional[List[str]] = None
    association_fee_includes: Optional[List[str]] = None

    public_remarks: Optional[str] = None
    private_remarks: Optional[str] = None
    showing_instructions: Optional[str] = None
    virtual_tour_url: Optional[str] = None

    tax_annual_amount: Optional[float] = None
    tax_year: Optional[int] = None
    association_fee: Optional[float] = None
    association_fee_frequency: Optional[str] = None

    listing_contract_date: Optional[date] = None
    off_market_date: Optional[date] = None
    original_entry_timestamp: Optional[datetime] = None
    modification_timestamp: Optional[datetime] = None
    created_by: Optional[str] = None

    main_photo_url: Optional[str] = None
    photo_count: int = 0
    photos: List[PhotoView] = Field(default_factory=list)


class ListingResponse(BaseModel):
    success: bool = True
    listing: ListingView


class ListingUpdateResponse(ListingResponse):
    archived: bool = False


class ListingPage(BaseModel):
    items: List[ListingView]
    total: int
    page: int
    per_page: int
    total_pages: int


class DeleteResponse(BaseModel):
    success: bool = True
    listing_id: int
    archived: bool
    failed_tables: List[str] = Field(default_factory=list)


class SyncStatusResponse(BaseModel):
    listing_id: int
    tables: Dict[str, Any]


class PhotoCreate(BaseModel):
    url: str = Field(..., min_length=1)


class PhotoOrder(BaseModel):
    photo_ids: List[int]
