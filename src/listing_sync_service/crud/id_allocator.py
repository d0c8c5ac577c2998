"""
Listing id allocation from the internal id band.
"""

import hashlib
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from listing_sync_service.exceptions import AllocationFailed
from listing_sync_service.models import ListingSequence
from listing_sync_service.utils.logging_config import logger


def derive_key(
    listing_id: int,
    agent_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> str:
    """
    Opaque 32-char listing key.

    With creation context the key hashes id, timestamp and agent; without it
    the key is a deterministic hash of the id alone.
    """
    if agent_id is None and created_at is None:
        seed = f"exclusive_{listing_id}"
    else:
        timestamp = (created_at or datetime.now(timezone.utc)).isoformat()
        seed = f"{listing_id}{timestamp}{agent_id or ''}"
    return hashlib.md5(seed.encode("utf-8")).hexdigest()


class IdAllocator:
    """
    Issues ids from the store's auto-increment sequence.

    Each allocation is one insert; the database assigns the value so
    concurrent allocations never collide.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], threshold: int):
        self.session_factory = session_factory
        self.threshold = threshold

    async def allocate(self, created_by: Optional[str] = None) -> int:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    row = ListingSequence(created_by=created_by)
                    session.add(row)
                    await session.flush()
                    listing_id = row.id
                    if listing_id >= self.threshold:
                        # Raising inside begin() rolls the sequence insert back
                        raise AllocationFailed(
                            f"Internal id space exhausted: {listing_id} >= {self.threshold}"
                        )
        except SQLAlchemyError as e:
            logger.error(f"Listing id allocation failed: {e}", exc_info=True)
            raise AllocationFailed("Failed to allocate listing id", details=str(e)) from e

        logger.info(f"Allocated listing id {listing_id}")
        return listing_id
