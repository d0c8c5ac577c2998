"""
Database operations for listings: id allocation, sync, archival, photos and reads.
"""

from listing_sync_service.crud.archive import ArchiveManager
from listing_sync_service.crud.formatter import ListingFormatter
from listing_sync_service.crud.id_allocator import IdAllocator, derive_key
from listing_sync_service.crud.media import PhotoStore
from listing_sync_service.crud.sync_engine import SyncEngine, SyncResult

__all__ = [
    "ArchiveManager",
    "ListingFormatter",
    "IdAllocator",
    "derive_key",
    "PhotoStore",
    "SyncEngine",
    "SyncResult",
]
