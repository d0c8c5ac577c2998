"""
Base model classes and common SQLAlchemy components.
"""

import re

from sqlalchemy import BigInteger, Column, DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, declared_attr

# Naming convention for constraints so every table gets predictable names
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    metadata = metadata

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return re.sub("(?<!^)(?=[A-Z])", "_", cls.__name__).lower()


class ListingIdMixin:
    """Every listing table is keyed by the listing id itself."""

    listing_id = Column(BigInteger, primary_key=True, autoincrement=False)
