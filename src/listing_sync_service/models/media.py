"""
Models for listing photos and the listing id sequence.
"""

from sqlalchemy import BigInteger, Column, Integer, String, Text

from listing_sync_service.models.base import Base


class ListingMedia(Base):
    __tablename__ = "listing_media"

    id = Column(Integer, primary_key=True, autoincrement=True)
    listing_id = Column(BigInteger, nullable=False, index=True)
    listing_key = Column(String(64), nullable=False)
    media_key = Column(String(64), nullable=False)
    media_url = Column(Text, nullable=False)
    media_category = Column(String(50), nullable=False, default="Photo")
    order_index = Column(Integer, nullable=False, default=0)
    # "active" or "archive"; archival retags rows instead of moving them
    source_table = Column(String(20), nullable=False, default="active")


class ListingSequence(Base):
    """Auto-increment table used purely as an id counter."""

    __tablename__ = "listing_sequence"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_by = Column(String(100))
