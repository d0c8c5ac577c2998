from typing import Any, Dict, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from listing_sync_service.utils.property_mapper import owned_columns


async def upsert_row(
    session: AsyncSession,
    model,
    listing_id: int,
    values: Dict[str, Any],
    insert_defaults: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Insert or update one listing table row keyed by ``listing_id``.

    On update only ``values`` are written. On insert ``insert_defaults``
    fill any column ``values`` leaves empty.

    Returns:
        bool: True if a row was inserted, False if an existing row was updated
    """
    values = owned_columns(values, model)
    existing = await session.scalar(
        select(model.listing_id).where(model.listing_id == listing_id)
    )

    if existing is None:
        row = dict(values)
        for column, default in (insert_defaults or {}).items():
            if row.get(column) is None:
                row[column] = default
        await session.execute(insert(model).values(listing_id=listing_id, **owned_columns(row, model)))
        return True

    if values:
        await session.execute(
            update(model).where(model.listing_id == listing_id).values(**values)
        )
    return False
