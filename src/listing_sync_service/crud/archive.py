"""
Moves a listing from the active tables to their archive twins.
"""

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from listing_sync_service.exceptions import ArchiveFailed, NotFound
from listing_sync_service.models import ARCHIVE_PAIRS, ListingMedia, ListingSummary
from listing_sync_service.services.events import ListingChanged, ListingEventBus
from listing_sync_service.utils.logging_config import logger


async def move_rows(session: AsyncSession, active_model, archive_model, listing_id: int) -> int:
    """Copy the listing's row into the archive table, then delete it from the active one."""
    columns = [column.name for column in active_model.__table__.columns]
    source = select(*(active_model.__table__.c[name] for name in columns)).where(
        active_model.listing_id == listing_id
    )
    await session.execute(insert(archive_model).from_select(columns, source))
    deleted = await session.execute(
        delete(active_model).where(active_model.listing_id == listing_id)
    )
    return deleted.rowcount


class ArchiveManager:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], events: ListingEventBus):
        self.session_factory = session_factory
        self.events = events

    async def archive(self, listing_id: int) -> None:
        """
        Move every table row for the listing to archive storage atomically.

        Media rows stay in place and are retagged with source "archive".

        Raises:
            NotFound: the listing is not in the active tables
            ArchiveFailed: a table pair failed; the listing is still fully active
        """
        async with self.session_factory() as session:
            listing_key = await session.scalar(
                select(ListingSummary.listing_key).where(ListingSummary.listing_id == listing_id)
            )
            await session.rollback()
            if listing_key is None:
                raise NotFound(f"Listing {listing_id} not found")

            table = "begin"
            try:
                async with session.begin():
                    for active_model, archive_model in ARCHIVE_PAIRS:
                        table = active_model.__tablename__
                        await move_rows(session, active_model, archive_model, listing_id)
                    table = ListingMedia.__tablename__
                    await session.execute(
                        update(ListingMedia)
                        .where(ListingMedia.listing_id == listing_id)
                        .values(source_table="archive")
                    )
                    table = "commit"
            except Exception as e:
                logger.error(
                    f"Archive of listing {listing_id} failed at {table}: {e}",
                    exc_info=True,
                    extra={"listing_id": listing_id, "table": table},
                )
                raise ArchiveFailed(table, e, listing_id=listing_id) from e

        logger.info(f"Archived listing {listing_id}")
        await self.events.publish(
            ListingChanged(listing_id=listing_id, listing_key=listing_key, reason="archive")
        )
