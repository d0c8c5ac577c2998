from listing_sync_service.models.base import Base, metadata
from listing_sync_service.models.listing_tables import (
    ACTIVE_TABLES,
    ARCHIVE_PAIRS,
    ListingDetails,
    ListingDetailsArchive,
    ListingFeatures,
    ListingFeaturesArchive,
    ListingFinancial,
    ListingFinancialArchive,
    ListingLocation,
    ListingLocationArchive,
    ListingRow,
    ListingRowArchive,
    ListingSummary,
    ListingSummaryArchive,
)
from listing_sync_service.models.media import ListingMedia, ListingSequence

__all__ = [
    "Base",
    "metadata",
    "ACTIVE_TABLES",
    "ARCHIVE_PAIRS",
    "ListingRow",
    "ListingSummary",
    "ListingDetails",
    "ListingLocation",
    "ListingFeatures",
    "ListingFinancial",
    "ListingRowArchive",
    "ListingSummaryArchive",
    "ListingDetailsArchive",
    "ListingLocationArchive",
    "ListingFeaturesArchive",
    "ListingFinancialArchive",
    "ListingMedia",
    "ListingSequence",
]
