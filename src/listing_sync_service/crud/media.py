"""
Photo rows for a listing.

Order index 0 is the primary photo. Every mutation rewrites indexes to stay
contiguous and refreshes the summary mirror (main photo URL and count) in
the same transaction.
"""

import hashlib
from typing import List, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from listing_sync_service.crud.sync_engine import SyncEngine
from listing_sync_service.exceptions import NotFound, ValidationFailed
from listing_sync_service.models import ListingMedia, ListingSummary
from listing_sync_service.services.events import ListingChanged, ListingEventBus
from listing_sync_service.utils.logging_config import logger


class PhotoStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sync_engine: SyncEngine,
        events: ListingEventBus,
    ):
        self.session_factory = session_factory
        self.sync_engine = sync_engine
        self.events = events

    async def _listing_key(self, session: AsyncSession, listing_id: int) -> str:
        listing_key = await session.scalar(
            select(ListingSummary.listing_key).where(ListingSummary.listing_id == listing_id)
        )
        if listing_key is None:
            raise NotFound(f"Listing {listing_id} not found")
        return listing_key

    async def _ordered(self, session: AsyncSession, listing_id: int) -> List[ListingMedia]:
        result = await session.execute(
            select(ListingMedia)
            .where(ListingMedia.listing_id == listing_id, ListingMedia.source_table == "active")
            .order_by(ListingMedia.order_index, ListingMedia.id)
        )
        return list(result.scalars().all())

    async def _refresh_mirror(self, session: AsyncSession, listing_id: int) -> None:
        photos = await self._ordered(session, listing_id)
        main_photo_url = photos[0].media_url if photos else None
        await self.sync_engine.update_photo_info(session, listing_id, main_photo_url, len(photos))

    async def _changed(self, listing_id: int, listing_key: str, reason: str) -> None:
        await self.events.publish(
            ListingChanged(listing_id=listing_id, listing_key=listing_key, reason=reason)
        )

    async def get_photos(self, listing_id: int) -> List[ListingMedia]:
        async with self.session_factory() as session:
            return await self._ordered(session, listing_id)

    async def add_photo(self, listing_id: int, url: str) -> ListingMedia:
        """Append a photo after the current last one."""
        async with self.session_factory() as session:
            async with session.begin():
                listing_key = await self._listing_key(session, listing_id)
                count = await session.scalar(
                    select(func.count(ListingMedia.id)).where(
                        ListingMedia.listing_id == listing_id,
                        ListingMedia.source_table == "active",
                    )
                )
                photo = ListingMedia(
                    listing_id=listing_id,
                    listing_key=listing_key,
                    media_key=hashlib.md5(f"{listing_id}{url}{count}".encode("utf-8")).hexdigest(),
                    media_url=url,
                    media_category="Photo",
                    order_index=count,
                    source_table="active",
                )
                session.add(photo)
                await session.flush()
                await self._refresh_mirror(session, listing_id)

        logger.info(f"Added photo {photo.id} to listing {listing_id} at index {photo.order_index}")
        await self._changed(listing_id, listing_key, "photo_added")
        return photo

    async def delete_photo(self, listing_id: int, photo_id: int) -> None:
        """Delete one photo and shift later photos down by one."""
        async with self.session_factory() as session:
            async with session.begin():
                listing_key = await self._listing_key(session, listing_id)
                photo = await session.get(ListingMedia, photo_id)
                if photo is None or photo.listing_id != listing_id:
                    raise NotFound(f"Photo {photo_id} not found for listing {listing_id}")

                removed_index = photo.order_index
                await session.delete(photo)
                await session.flush()
                await session.execute(
                    update(ListingMedia)
                    .where(
                        ListingMedia.listing_id == listing_id,
                        ListingMedia.order_index > removed_index,
                    )
                    .values(order_index=ListingMedia.order_index - 1)
                )
                await self._refresh_mirror(session, listing_id)

        logger.info(f"Deleted photo {photo_id} from listing {listing_id}")
        await self._changed(listing_id, listing_key, "photo_deleted")

    async def reorder_photos(self, listing_id: int, photo_ids: Sequence[int]) -> List[ListingMedia]:
        """Apply a full new order; the first id becomes the primary photo."""
        async with self.session_factory() as session:
            async with session.begin():
                listing_key = await self._listing_key(session, listing_id)
                photos = {photo.id: photo for photo in await self._ordered(session, listing_id)}
                if sorted(photo_ids) != sorted(photos):
                    raise ValidationFailed(
                        {"photo_ids": "Must list every photo of the listing exactly once"}
                    )
                for index, photo_id in enumerate(photo_ids):
                    photos[photo_id].order_index = index
                await session.flush()
                await self._refresh_mirror(session, listing_id)
                ordered = [photos[photo_id] for photo_id in photo_ids]

        await self._changed(listing_id, listing_key, "photos_reordered")
        return ordered

    async def delete_all_photos(self, listing_id: int) -> int:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(ListingMedia).where(ListingMedia.listing_id == listing_id)
                )
        return result.rowcount

