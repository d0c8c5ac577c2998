"""
Models for the six listing tables and their archive shadows.

A listing is one logical record split across these tables, all keyed by
``listing_id``. Each active table has an archive twin with an identical
column set; the column sets live on mixins so both twins stay in step.
Multi-value attributes are stored as comma-joined text and the location
point as WKT in (longitude latitude) order.
"""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, Numeric, String, Text

from listing_sync_service.models.base import Base, ListingIdMixin

Money = Numeric(14, 2, asdecimal=False)


class ListingColumns(ListingIdMixin):
    listing_key = Column(String(64), nullable=False, index=True)
    standard_status = Column(String(50), nullable=False, default="Active")
    list_price = Column(Money)
    original_list_price = Column(Money)
    property_type = Column(String(50), nullable=False, default="Residential")
    property_sub_type = Column(String(100))
    public_remarks = Column(Text)
    private_remarks = Column(Text)
    showing_instructions = Column(Text)
    virtual_tour_url_unbranded = Column(Text)
    created_by = Column(String(100))
    original_entry_timestamp = Column(DateTime(timezone=True))
    modification_timestamp = Column(DateTime(timezone=True))
    off_market_date = Column(Date)


class SummaryColumns(ListingIdMixin):
    listing_key = Column(String(64), nullable=False, index=True)
    mls_id = Column(String(50))
    exclusive_tag = Column(String(50))
    standard_status = Column(String(50), index=True)
    list_price = Column(Money)
    original_list_price = Column(Money)
    property_type = Column(String(50))
    property_sub_type = Column(String(100))
    street_number = Column(String(20))
    street_name = Column(String(255))
    unit_number = Column(String(20))
    city = Column(String(100), index=True)
    state_or_province = Column(String(2))
    postal_code = Column(String(10))
    county = Column(String(100))
    bedrooms_total = Column(Integer)
    bathrooms_total = Column(Float)
    bathrooms_full = Column(Integer)
    bathrooms_half = Column(Integer)
    building_area_total = Column(Integer)
    lot_size_acres = Column(Float)
    year_built = Column(Integer)
    garage_spaces = Column(Integer)
    latitude = Column(Float)
    longitude = Column(Float)
    has_pool = Column(Boolean, default=False)
    has_fireplace = Column(Boolean, default=False)
    has_basement = Column(Boolean, default=False)
    has_hoa = Column(Boolean, default=False)
    main_photo_url = Column(Text)
    photo_count = Column(Integer, default=0)
    listing_contract_date = Column(Date)
    days_on_market = Column(Integer)
    price_per_sqft = Column(Float)
    modification_timestamp = Column(DateTime(timezone=True), index=True)


class DetailColumns(ListingIdMixin):
    bedrooms_total = Column(Integer)
    bathrooms_total_integer = Column(Integer)
    bathrooms_total_decimal = Column(Float)
    bathrooms_full = Column(Integer)
    bathrooms_half = Column(Integer)
    building_area_total = Column(Integer)
    living_area = Column(Integer)
    lot_size_acres = Column(Float)
    lot_size_square_feet = Column(Integer)
    year_built = Column(Integer)
    garage_spaces = Column(Integer)
    fireplace_yn = Column(Boolean, default=False)
    architectural_style = Column(String(100))
    stories_total = Column(Integer)
    heating = Column(Text)
    cooling = Column(Text)
    heating_yn = Column(Boolean, default=False)
    cooling_yn = Column(Boolean, default=False)
    flooring = Column(Text)
    laundry_features = Column(Text)
    basement = Column(Text)
    interior_features = Column(Text)
    appliances = Column(Text)
    construction_materials = Column(Text)
    roof = Column(Text)
    foundation_details = Column(Text)
    parking_features = Column(Text)
    parking_total = Column(Integer)


class LocationColumns(ListingIdMixin):
    street_number = Column(String(20))
    street_name = Column(String(255))
    unit_number = Column(String(20))
    city = Column(String(100))
    state_or_province = Column(String(2))
    postal_code = Column(String(10))
    county_or_parish = Column(String(100))
    subdivision_name = Column(String(255))
    unparsed_address = Column(Text)
    latitude = Column(Float)
    longitude = Column(Float)
    coordinates = Column(String(64))
    coordinates_approximate = Column(Boolean, default=False)


class FeatureColumns(ListingIdMixin):
    pool_private_yn = Column(Boolean, default=False)
    waterfront_yn = Column(Boolean, default=False)
    pets_allowed = Column(Boolean)
    exterior_features = Column(Text)
    waterfront_features = Column(Text)
    view_yn = Column(Boolean, default=False)
    view = Column(Text)


class FinancialColumns(ListingIdMixin):
    tax_annual_amount = Column(Money)
    tax_year = Column(Integer)
    association_yn = Column(Boolean, default=False)
    association_fee = Column(Money)
    association_fee_frequency = Column(String(50))
    association_fee_includes = Column(Text)


class ListingRow(Base, ListingColumns):
    __tablename__ = "listings"


class ListingSummary(Base, SummaryColumns):
    __tablename__ = "listing_summary"


class ListingDetails(Base, DetailColumns):
    __tablename__ = "listing_details"


class ListingLocation(Base, LocationColumns):
    __tablename__ = "listing_location"


class ListingFeatures(Base, FeatureColumns):
    __tablename__ = "listing_features"


class ListingFinancial(Base, FinancialColumns):
    __tablename__ = "listing_financial"


class ListingRowArchive(Base, ListingColumns):
    __tablename__ = "listings_archive"


class ListingSummaryArchive(Base, SummaryColumns):
    __tablename__ = "listing_summary_archive"


class ListingDetailsArchive(Base, DetailColumns):
    __tablename__ = "listing_details_archive"


class ListingLocationArchive(Base, LocationColumns):
    __tablename__ = "listing_location_archive"


class ListingFeaturesArchive(Base, FeatureColumns):
    __tablename__ = "listing_features_archive"


class ListingFinancialArchive(Base, FinancialColumns):
    __tablename__ = "listing_financial_archive"


# Write order for sync and the (active, archive) pairs for archival.
ACTIVE_TABLES = (
    ListingRow,
    ListingSummary,
    ListingDetails,
    ListingLocation,
    ListingFeatures,
    ListingFinancial,
)

ARCHIVE_PAIRS = (
    (ListingRow, ListingRowArchive),
    (ListingSummary, ListingSummaryArchive),
    (ListingDetails, ListingDetailsArchive),
    (ListingLocation, ListingLocationArchive),
    (ListingFeatures, ListingFeaturesArchive),
    (ListingFinancial, ListingFinancialArchive),
)
