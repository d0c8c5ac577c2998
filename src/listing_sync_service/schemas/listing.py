"""
Typed listing structures.

``Listing`` is the normalized record the core components operate on.
``ListingInput`` is the same shape with boundary coercion: aliases,
formatted prices, loose booleans and comma-separated multi-value strings.
"""

import re
from datetime import date
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class PropertyType(str, Enum):
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"
    LAND = "Land"
    MULTI_FAMILY = "Multi-Family"
    RENTAL = "Rental"


class StandardStatus(str, Enum):
    ACTIVE = "Active"
    PENDING = "Pending"
    ACTIVE_UNDER_CONTRACT = "Active Under Contract"
    CLOSED = "Closed"
    WITHDRAWN = "Withdrawn"
    EXPIRED = "Expired"
    CANCELED = "Canceled"


TERMINAL_STATUS = StandardStatus.CLOSED.value

MULTI_VALUE_FIELDS = (
    "heating",
    "cooling",
    "interior_features",
    "appliances",
    "flooring",
    "laundry_features",
    "construction_materials",
    "exterior_features",
    "waterfront_features",
    "view",
    "parking_features",
    "association_fee_includes",
)

PRICE_FIELDS = ("list_price", "original_list_price", "tax_annual_amount", "association_fee")

BOOLEAN_FIELDS = (
    "has_pool",
    "has_fireplace",
    "has_basement",
    "has_hoa",
    "pet_friendly",
    "waterfront_yn",
    "view_yn",
    "heating_yn",
    "cooling_yn",
    "association_yn",
)

NUMERIC_FIELDS = (
    "bedrooms_total",
    "bathrooms_total",
    "bathrooms_full",
    "bathrooms_half",
    "building_area_total",
    "lot_size_acres",
    "lot_size_square_feet",
    "year_built",
    "garage_spaces",
    "stories_total",
    "parking_total",
    "tax_year",
    "latitude",
    "longitude",
)

_TRUE_STRINGS = {"true", "1", "yes", "on", "y"}


def to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def sanitize_price(value: Any) -> Optional[float]:
    """Strip currency formatting: "$450,000" -> 450000.0."""
    if value is None or isinstance(value, (int, float)):
        return value
    cleaned = re.sub(r"[^0-9.]", "", str(value))
    return float(cleaned) if cleaned else None


def split_values(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(item) for item in value]
    cleaned = [item.strip() for item in items if item and item.strip()]
    return cleaned or None


class Listing(BaseModel):
    """A listing record after boundary validation."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, use_enum_values=True)

    # Classification
    property_type: Optional[PropertyType] = None
    property_sub_type: Optional[str] = None
    standard_status: Optional[StandardStatus] = None
    exclusive_tag: Optional[str] = None

    # Price
    list_price: Optional[float] = None
    original_list_price: Optional[float] = None

    # Address
    street_number: Optional[str] = None
    street_name: Optional[str] = None
    unit_number: Optional[str] = None
    city: Optional[str] = None
    state_or_province: Optional[str] = None
    postal_code: Optional[str] = None
    county: Optional[str] = None
    subdivision_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    # Set when stored coordinates came from a city/zip or default fallback
    coordinates_approximate: Optional[bool] = None

    # Specification
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

    # Flags
    has_pool: Optional[bool] = None
    has_fireplace: Optional[bool] = None
    has_basement: Optional[bool] = None
    has_hoa: Optional[bool] = None
    pet_friendly: Optional[bool] = None
    waterfront_yn: Optional[bool] = None
    view_yn: Optional[bool] = None
    heating_yn: Optional[bool] = None
    cooling_yn: Optional[bool] = None
    association_yn: Optional[bool] = None

    # Multi-value attributes
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

    # Remarks
    public_remarks: Optional[str] = None
    private_remarks: Optional[str] = None
    showing_instructions: Optional[str] = None
    virtual_tour_url: Optional[str] = None

    # Financial
    tax_annual_amount: Optional[float] = None
    tax_year: Optional[int] = None
    association_fee: Optional[float] = None
    association_fee_frequency: Optional[str] = None

    # Dates
    listing_contract_date: Optional[date] = None
    off_market_date: Optional[date] = None

    # Originating agent
    created_by: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)


class ListingInput(Listing):
    """Raw listing fields as accepted from callers."""

    standard_status: Optional[StandardStatus] = Field(
        None, validation_alias=AliasChoices("standard_status", "status")
    )
    state_or_province: Optional[str] = Field(
        None, validation_alias=AliasChoices("state_or_province", "state")
    )
    postal_code: Optional[str] = Field(
        None, validation_alias=AliasChoices("postal_code", "zip")
    )
    bedrooms_total: Optional[int] = Field(
        None, validation_alias=AliasChoices("bedrooms_total", "bedrooms")
    )

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator(*PRICE_FIELDS, mode="before")
    @classmethod
    def strip_price_formatting(cls, v: Any) -> Any:
        return sanitize_price(v)

    @field_validator(*BOOLEAN_FIELDS, mode="before")
    @classmethod
    def coerce_boolean(cls, v: Any) -> Any:
        return None if v is None or v == "" else to_boolean(v)

    @field_validator(*MULTI_VALUE_FIELDS, mode="before")
    @classmethod
    def coerce_multi_value(cls, v: Any) -> Any:
        return split_values(v)

    @field_validator("state_or_province", mode="before")
    @classmethod
    def upper_state(cls, v: Any) -> Any:
        return (v.strip().upper() or None) if isinstance(v, str) else v

    @field_validator(
        "street_number",
        "street_name",
        "unit_number",
        "city",
        "postal_code",
        "county",
        "subdivision_name",
        "exclusive_tag",
        "property_sub_type",
        mode="before",
    )
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return (v.strip() or None) if isinstance(v, str) else v

    @model_validator(mode="after")
    def derive_flags(self) -> "ListingInput":
        provided = self.model_fields_set
        if "heating" in provided and "heating_yn" not in provided:
            self.heating_yn = bool(self.heating) and self.heating != ["None"]
            provided.add("heating_yn")
        if "cooling" in provided and "cooling_yn" not in provided:
            self.cooling_yn = bool(self.cooling) and self.cooling != ["None"]
            provided.add("cooling_yn")
        if "view" in provided and "view_yn" not in provided:
            self.view_yn = bool(self.view)
            provided.add("view_yn")
        if "association_fee" in provided and "association_yn" not in provided:
            self.association_yn = (self.association_fee or 0) > 0
            provided.add("association_yn")
        return self

    def provided_fields(self) -> dict:
        """Fields the caller explicitly supplied."""
        return self.model_dump(exclude_unset=True, exclude={"coordinates_approximate"})
