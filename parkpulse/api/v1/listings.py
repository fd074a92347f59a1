"""Listings API routes: ownership-scoped edits, marketplace reads."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from parkpulse.api.deps import get_current_identity, get_db
from parkpulse.auth.jwt import Identity
from parkpulse.schemas.booking import BookingRequestCreate, BookingResponse
from parkpulse.schemas.listing import (
    ListingCreate,
    ListingListResponse,
    ListingResponse,
    ListingUpdate,
    ListingUpdateResponse,
)
from parkpulse.services import booking_lifecycle, listing_registry

router = APIRouter(prefix="/api/v1/listings", tags=["listings"])


@router.post(
    "",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List a parking spot for one day and time window",
)
async def create_listing(
    body: ListingCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> ListingResponse:
    """Create a listing owned by the caller. 409 if the spot is already listed for overlapping hours."""
    listing = await listing_registry.create_listing(db, identity.user_id, body)
    return ListingResponse.model_validate(listing)


@router.get(
    "",
    response_model=ListingListResponse,
    summary="Browse the marketplace",
)
async def list_listings(
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _identity: Identity = Depends(get_current_identity),
) -> ListingListResponse:
    """Return listings, newest availability date first."""
    items = await listing_registry.list_marketplace_listings(db, limit=limit)
    return ListingListResponse(
        items=[ListingResponse.model_validate(item) for item in items],
        total=len(items),
    )


@router.get(
    "/mine",
    response_model=ListingListResponse,
    summary="List the caller's own listings",
)
async def list_my_listings(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> ListingListResponse:
    items = await listing_registry.list_owner_listings(db, identity.user_id)
    return ListingListResponse(
        items=[ListingResponse.model_validate(item) for item in items],
        total=len(items),
    )


@router.get(
    "/{listing_id}",
    response_model=ListingResponse,
    summary="Get a listing by ID",
)
async def get_listing(
    listing_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _identity: Identity = Depends(get_current_identity),
) -> ListingResponse:
    listing = await listing_registry.get_listing(db, listing_id)
    return ListingResponse.model_validate(listing)


@router.put(
    "/{listing_id}",
    response_model=ListingUpdateResponse,
    summary="Update a listing",
)
async def update_listing(
    listing_id: uuid.UUID,
    body: ListingUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> ListingUpdateResponse:
    """Partially update a listing the caller owns.

    Bookings that no longer fit the new date/window are canceled by the
    owner side. ``partial`` is true when some of those cancellations could
    not be saved.
    """
    listing = await listing_registry.get_listing(db, listing_id)
    if listing.owner_id != identity.user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Listing not found",
        )

    result = await listing_registry.update_listing(db, listing_id, body)
    return ListingUpdateResponse(
        listing=ListingResponse.model_validate(result.listing),
        canceled_booking_ids=result.canceled_booking_ids,
        failed_booking_ids=result.failed_booking_ids,
        partial=result.partial,
    )


@router.post(
    "/{listing_id}/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking on a listing",
)
async def request_booking(
    listing_id: uuid.UUID,
    body: BookingRequestCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingResponse:
    """Create a pending booking request; the owner approves or denies it later."""
    booking = await booking_lifecycle.request_booking(
        db,
        listing_id,
        requester_id=identity.user_id,
        requester_name=identity.name,
        requester_contact=identity.email,
        start_time=body.start_time,
        end_time=body.end_time,
    )
    return BookingResponse.model_validate(booking)
