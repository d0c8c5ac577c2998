from typing import Optional

from pydantic import BaseModel, Field

from listing_sync_service.schemas.listing import Listing


class Address(BaseModel):
    street_number: Optional[str] = None
    street_name: Optional[str] = None
    unit_number: Optional[str] = None
    city: Optional[str] = None
    state_or_province: Optional[str] = None
    postal_code: Optional[str] = None

    @classmethod
    def from_listing(cls, listing: Listing) -> "Address":
        return cls(**listing.model_dump(include=set(cls.model_fields)))


class GeocodeResult(BaseModel):
    latitude: float
    longitude: float
    approximate: bool = False
    provider: Optional[str] = None
    fallback_address: Optional[str] = None
    is_default: bool = False


class GeocodeResponse(GeocodeResult):
    in_service_area: bool = Field(..., description="Inside the configured operating bounds")
