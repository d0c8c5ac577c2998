from fastapi import APIRouter, Depends

from listing_sync_service.context import AppContext, get_context
from listing_sync_service.schemas.geocoding import Address, GeocodeResponse

router = APIRouter(prefix="/geocoding", tags=["Geocoding"])


@router.post("/resolve", response_model=GeocodeResponse)
async def resolve_address(
    address: Address,
    context: AppContext = Depends(get_context),
) -> GeocodeResponse:
    """Resolve an address and report whether it falls in the service area."""
    result = await context.geocoder.resolve(address)
    return GeocodeResponse(
        **result.model_dump(),
        in_service_area=context.geocoder.is_in_service_area(result.latitude, result.longitude),
    )
