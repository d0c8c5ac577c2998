"""
Listing write and read orchestration.

Create and update run input through validation and normalization before the
sync engine. Updates that move a listing into the terminal status trigger
archival here, after the sync has committed.
"""

import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from listing_sync_service.clients.cache_client import CacheClient
from listing_sync_service.config import Settings
from listing_sync_service.crud.archive import ArchiveManager
from listing_sync_service.crud.formatter import ListingFormatter
from listing_sync_service.crud.id_allocator import IdAllocator, derive_key
from listing_sync_service.crud.media import PhotoStore
from listing_sync_service.crud.sync_engine import SyncEngine
from listing_sync_service.exceptions import NotFound
from listing_sync_service.models import ListingDetails, ListingRow, ListingSummary
from listing_sync_service.schemas.listing import (
    TERMINAL_STATUS,
    Listing,
    ListingInput,
    StandardStatus,
)
from listing_sync_service.schemas.views import DeleteResponse, ListingPage, ListingView, PhotoView
from listing_sync_service.services.events import listing_view_key
from listing_sync_service.utils.logging_config import logger
from listing_sync_service.utils.normalizer import normalize
from listing_sync_service.utils.validation import validate_create, validate_update

PRIVATE_FIELDS = ("private_remarks", "showing_instructions")

ADDRESS_FIELDS = (
    "street_number",
    "street_name",
    "unit_number",
    "city",
    "state_or_province",
    "postal_code",
)


def merge_for_update(stored: Listing, incoming: dict) -> Listing:
    """
    Overlay supplied fields on the stored record.

    Whichever bathroom or lot size representation the caller supplied wins:
    stored values of the other representation are dropped so the normalizer
    derives them again. Without supplied coordinates, a changed address or
    approximate stored coordinates are geocoded again. Supplied coordinates
    are exact. Concurrent updates are last-writer-wins.
    """
    merged = stored.model_dump()

    if "bathrooms_total" in incoming and not {"bathrooms_full", "bathrooms_half"} & incoming.keys():
        merged["bathrooms_full"] = None
        merged["bathrooms_half"] = None
    if "lot_size_acres" in incoming and "lot_size_square_feet" not in incoming:
        merged["lot_size_square_feet"] = None

    address_changed = any(
        field in incoming and incoming[field] != merged.get(field) for field in ADDRESS_FIELDS
    )
    if {"latitude", "longitude"} & incoming.keys():
        merged["coordinates_approximate"] = False
    elif address_changed or merged.get("coordinates_approximate"):
        merged["latitude"] = None
        merged["longitude"] = None
        merged["coordinates_approximate"] = None

    merged.update(incoming)
    return Listing.model_validate(merged)


class ListingService:
    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        allocator: IdAllocator,
        sync_engine: SyncEngine,
        archive_manager: ArchiveManager,
        photo_store: PhotoStore,
        formatter: ListingFormatter,
        cache: CacheClient,
    ):
        self.settings = settings
        self.session_factory = session_factory
        self.allocator = allocator
        self.sync_engine = sync_engine
        self.archive_manager = archive_manager
        self.photo_store = photo_store
        self.formatter = formatter
        self.cache = cache

    async def _format(self, listing_id: int) -> ListingView:
        async with self.session_factory() as session:
            view = await self.formatter.format(session, listing_id)
        if view is None:
            raise NotFound(f"Listing {listing_id} not found")
        return view

    async def _stored_record(self, listing_id: int) -> Tuple[ListingView, Listing]:
        async with self.session_factory() as session:
            view = await self.formatter.format(session, listing_id)
            if view is None:
                raise NotFound(f"Listing {listing_id} not found")
            lot_size_square_feet = await session.scalar(
                select(ListingDetails.lot_size_square_feet).where(
                    ListingDetails.listing_id == listing_id
                )
            )
        record = view.model_dump()
        # The view derives square feet from acres; keep the stored column
        record["lot_size_square_feet"] = lot_size_square_feet
        return view, Listing.model_validate(record)

    async def _listing_key(self, listing_id: int) -> Optional[str]:
        async with self.session_factory() as session:
            listing_key = await session.scalar(
                select(ListingSummary.listing_key).where(ListingSummary.listing_id == listing_id)
            )
            if listing_key is None:
                listing_key = await session.scalar(
                    select(ListingRow.listing_key).where(ListingRow.listing_id == listing_id)
                )
        return listing_key

    async def create(self, data: ListingInput, agent_id: Optional[str] = None) -> ListingView:
        """
        Validate, normalize, allocate an id and sync a new listing.

        Raises:
            ValidationFailed, AllocationFailed, SyncFailed
        """
        validate_create(data)
        fields = data.provided_fields()
        fields.setdefault("standard_status", StandardStatus.ACTIVE.value)
        if agent_id:
            fields["created_by"] = agent_id
        listing = normalize(Listing.model_validate(fields))

        listing_id = await self.allocator.allocate(created_by=listing.created_by)
        listing_key = derive_key(listing_id, listing.created_by, datetime.now(timezone.utc))
        await self.sync_engine.sync(listing_id, listing, listing_key)

        logger.info(f"Created listing {listing_id}")
        return await self._format(listing_id)

    async def update(self, listing_id: int, data: ListingInput) -> Tuple[ListingView, bool]:
        """
        Merge supplied fields into the stored listing and sync.

        Returns:
            Tuple[ListingView, bool]: the synced view and whether it was archived
        """
        validate_update(data)
        stored_view, stored = await self._stored_record(listing_id)
        listing_key = stored_view.listing_key or derive_key(listing_id)

        listing = normalize(merge_for_update(stored, data.provided_fields()))
        await self.sync_engine.sync(listing_id, listing, listing_key)
        view = await self._format(listing_id)

        archived = False
        if stored.standard_status != TERMINAL_STATUS and listing.standard_status == TERMINAL_STATUS:
            logger.info(f"Listing {listing_id} closed, archiving")
            await self.archive_manager.archive(listing_id)
            archived = True

        return view, archived

    async def archive_or_delete(self, listing_id: int, archive: bool = True) -> DeleteResponse:
        listing_key = await self._listing_key(listing_id)
        if listing_key is None:
            raise NotFound(f"Listing {listing_id} not found")

        if archive:
            await self.archive_manager.archive(listing_id)
            return DeleteResponse(listing_id=listing_id, archived=True)

        removed = await self.photo_store.delete_all_photos(listing_id)
        logger.info(f"Removed {removed} photo(s) before deleting listing {listing_id}")
        failed = await self.sync_engine.delete(listing_id, listing_key)
        return DeleteResponse(listing_id=listing_id, archived=False, failed_tables=failed)

    async def get(self, listing_id: int, role: str = "public") -> ListingView:
        """Read-through cached view; the public view hides agent-only remarks."""
        listing_key = await self._listing_key(listing_id)
        cache_key = listing_view_key(listing_key, role) if listing_key else None

        if cache_key:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return ListingView.model_validate(cached)

        view = await self._format(listing_id)
        if role != "agent":
            view = view.model_copy(update={field: None for field in PRIVATE_FIELDS})

        if cache_key:
            await self.cache.set(
                cache_key, view.model_dump(mode="json"), ttl=self.settings.LISTING_CACHE_TTL_SECONDS
            )
        return view

    async def list(
        self,
        status: Optional[str] = None,
        city: Optional[str] = None,
        property_type: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> ListingPage:
        """Internally-originated listings, most recently modified first."""
        page = max(page, 1)
        per_page = min(max(per_page or self.settings.DEFAULT_PAGE_SIZE, 1), self.settings.MAX_PAGE_SIZE)

        conditions = [ListingSummary.listing_id < self.settings.EXTERNAL_ID_THRESHOLD]
        if status:
            conditions.append(ListingSummary.standard_status == status)
        if city:
            conditions.append(ListingSummary.city == city)
        if property_type:
            conditions.append(ListingSummary.property_type == property_type)

        async with self.session_factory() as session:
            total = await session.scalar(
                select(func.count(ListingSummary.listing_id)).where(*conditions)
            )
            ids = (
                await session.execute(
                    select(ListingSummary.listing_id)
                    .where(*conditions)
                    .order_by(
                        ListingSummary.modification_timestamp.desc(),
                        ListingSummary.listing_id.desc(),
                    )
                    .offset((page - 1) * per_page)
                    .limit(per_page)
                )
            ).scalars().all()

            items = []
            for listing_id in ids:
                view = await self.formatter.format(session, listing_id)
                items.append(view.model_copy(update={field: None for field in PRIVATE_FIELDS}))

        return ListingPage(
            items=items,
            total=total or 0,
            page=page,
            per_page=per_page,
            total_pages=math.ceil((total or 0) / per_page),
        )

    async def sync_status(self, listing_id: int) -> dict:
        status = await self.sync_engine.get_sync_status(listing_id)
        if not any(present for table, present in status.items() if table != "complete"):
            raise NotFound(f"Listing {listing_id} not found")
        return status

    async def photos(self, listing_id: int) -> List[PhotoView]:
        if not await self.sync_engine.listing_exists(listing_id):
            raise NotFound(f"Listing {listing_id} not found")
        return [
            PhotoView(id=photo.id, url=photo.media_url, sort_order=photo.order_index, is_primary=index == 0)
            for index, photo in enumerate(await self.photo_store.get_photos(listing_id))
        ]

    async def add_photo(self, listing_id: int, url: str) -> List[PhotoView]:
        await self.photo_store.add_photo(listing_id, url)
        return await self.photos(listing_id)

    async def delete_photo(self, listing_id: int, photo_id: int) -> List[PhotoView]:
        await self.photo_store.delete_photo(listing_id, photo_id)
        return await self.photos(listing_id)

    async def reorder_photos(self, listing_id: int, photo_ids: Sequence[int]) -> List[PhotoView]:
        await self.photo_store.reorder_photos(listing_id, photo_ids)
        return await self.photos(listing_id)
