"""
Listing endpoints: create, update, archive/delete, reads and photos.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Header, Query, status

from listing_sync_service.context import get_listing_service
from listing_sync_service.schemas.common import ErrorResponse
from listing_sync_service.schemas.listing import ListingInput
from listing_sync_service.schemas.views import (
    DeleteResponse,
    ListingPage,
    ListingResponse,
    ListingUpdateResponse,
    PhotoCreate,
    PhotoOrder,
    PhotoView,
    SyncStatusResponse,
)
from listing_sync_service.services.listing_service import ListingService

router = APIRouter(
    prefix="/listings",
    tags=["Listings"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


@router.get("", response_model=ListingPage)
async def list_listings(
    status_filter: Optional[str] = Query(None, alias="status"),
    city: Optional[str] = None,
    property_type: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1),
    service: ListingService = Depends(get_listing_service),
) -> ListingPage:
    return await service.list(
        status=status_filter,
        city=city,
        property_type=property_type,
        page=page,
        per_page=per_page,
    )


@router.post("", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    payload: ListingInput,
    agent_id: Optional[str] = Header(None, alias="X-Agent-Id"),
    service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    listing = await service.create(payload, agent_id=agent_id)
    return ListingResponse(listing=listing)


@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: int,
    view: Literal["public", "agent"] = "public",
    service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    listing = await service.get(listing_id, role=view)
    return ListingResponse(listing=listing)


@router.put("/{listing_id}", response_model=ListingUpdateResponse)
async def update_listing(
    listing_id: int,
    payload: ListingInput,
    service: ListingService = Depends(get_listing_service),
) -> ListingUpdateResponse:
    listing, archived = await service.update(listing_id, payload)
    return ListingUpdateResponse(listing=listing, archived=archived)


@router.delete("/{listing_id}", response_model=DeleteResponse)
async def delete_listing(
    listing_id: int,
    archive: bool = True,
    service: ListingService = Depends(get_listing_service),
) -> DeleteResponse:
    return await service.archive_or_delete(listing_id, archive=archive)


@router.get("/{listing_id}/sync-status", response_model=SyncStatusResponse)
async def get_sync_status(
    listing_id: int,
    service: ListingService = Depends(get_listing_service),
) -> SyncStatusResponse:
    tables = await service.sync_status(listing_id)
    return SyncStatusResponse(listing_id=listing_id, tables=tables)


@router.get("/{listing_id}/photos", response_model=List[PhotoView])
async def get_photos(
    listing_id: int,
    service: ListingService = Depends(get_listing_service),
) -> List[PhotoView]:
    return await service.photos(listing_id)


@router.post(
    "/{listing_id}/photos",
    response_model=List[PhotoView],
    status_code=status.HTTP_201_CREATED,
)
async def add_photo(
    listing_id: int,
    payload: PhotoCreate,
    service: ListingService = Depends(get_listing_service),
) -> List[PhotoView]:
    return await service.add_photo(listing_id, payload.url)


@router.put("/{listing_id}/photos/order", response_model=List[PhotoView])
async def reorder_photos(
    listing_id: int,
    payload: PhotoOrder,
    service: ListingService = Depends(get_listing_service),
) -> List[PhotoView]:
    return await service.reorder_photos(listing_id, payload.photo_ids)


@router.delete("/{listing_id}/photos/{photo_id}", response_model=List[PhotoView])
async def delete_photo(
    listing_id: int,
    photo_id: int,
    service: ListingService = Depends(get_listing_service),
) -> List[PhotoView]:
    return await service.delete_photo(listing_id, photo_id)
