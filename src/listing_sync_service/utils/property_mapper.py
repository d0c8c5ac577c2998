"""
Utility functions for mapping between listing records and table rows.
"""

from typing import Any, Dict, Iterable, List, Optional

from listing_sync_service.schemas.listing import split_values


def join_values(values: Optional[Iterable[str]]) -> Optional[str]:
    """Store a multi-value attribute as comma-joined text."""
    if not values:
        return None
    return ",".join(values)


def to_list(text: Optional[str]) -> Optional[List[str]]:
    return split_values(text)


def row_to_dict(row: Any) -> Dict[str, Any]:
    """Column values of an ORM row, or {} for a missing row."""
    if row is None:
        return {}
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def owned_columns(values: Dict[str, Any], model_class) -> Dict[str, Any]:
    """
    Keep only keys that are columns of ``model_class``.

    Raises:
        KeyError: if a key names a column the table does not have
    """
    columns = {column.name for column in model_class.__table__.columns}
    unknown = set(values) - columns
    if unknown:
        raise KeyError(f"{model_class.__tablename__} has no column(s): {sorted(unknown)}")
    return values
