"""Bookings API router.

Ownership rule: a booking is visible to its requester and to the owner of
its listing. Decisions (approve/deny) belong to the owner, deletion to the
requester. Everyone else gets a 404.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from parkpulse.api.deps import get_current_identity, get_db
from parkpulse.auth.jwt import Identity
from parkpulse.events import CancellationReason
from parkpulse.models.booking import Booking
from parkpulse.schemas.booking import BookingListResponse, BookingResponse, MessageResponse
from parkpulse.services import booking_lifecycle

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _get_booking_for(
    db: AsyncSession,
    booking_id: uuid.UUID,
    identity: Identity,
    *,
    owner: bool = True,
    requester: bool = True,
) -> Booking:
    """Fetch a booking the caller may act on in the given role(s).

    Raises ``HTTPException 404`` when the booking does not exist or the
    caller holds none of the allowed roles on it.
    """
    booking = await booking_lifecycle.get_booking(db, booking_id)
    allowed = (owner and booking.owner_id == identity.user_id) or (
        requester and booking.requester_id == identity.user_id
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found",
        )
    return booking


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List the caller's booking requests",
)
async def list_my_bookings(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingListResponse:
    items = await booking_lifecycle.list_requester_bookings(db, identity.user_id)
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in items],
        total=len(items),
    )


@router.get(
    "/requests",
    response_model=BookingListResponse,
    summary="List pending requests on the caller's listings",
)
async def list_incoming_requests(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingListResponse:
    """Pending requests awaiting the caller's decision, oldest first."""
    items = await booking_lifecycle.list_owner_requests(db, identity.user_id)
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in items],
        total=len(items),
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingResponse:
    booking = await _get_booking_for(db, booking_id, identity)
    return BookingResponse.model_validate(booking)


@router.post(
    "/{booking_id}/approve",
    response_model=BookingResponse,
    summary="Approve a pending request",
)
async def approve_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingResponse:
    """Confirm the request. 409 if it overlaps an already confirmed booking."""
    await _get_booking_for(db, booking_id, identity, requester=False)
    booking = await booking_lifecycle.approve_booking(db, booking_id)
    return BookingResponse.model_validate(booking)


@router.post(
    "/{booking_id}/deny",
    response_model=BookingResponse,
    summary="Deny a pending request",
)
async def deny_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingResponse:
    await _get_booking_for(db, booking_id, identity, requester=False)
    booking = await booking_lifecycle.deny_booking(db, booking_id)
    return BookingResponse.model_validate(booking)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a pending or confirmed booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingResponse:
    """Cancel as the requester, or as the owner when the caller owns the listing."""
    booking = await _get_booking_for(db, booking_id, identity)
    if booking.requester_id == identity.user_id:
        booking = await booking_lifecycle.cancel_by_requester(db, booking_id)
    else:
        booking = await booking_lifecycle.cancel_by_owner(db, booking_id, reason=CancellationReason.OWNER)
    return BookingResponse.model_validate(booking)


@router.delete(
    "/{booking_id}",
    response_model=MessageResponse,
    summary="Delete a denied or canceled booking",
)
async def delete_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> MessageResponse:
    """Permanently remove the caller's booking. 409 while it is still pending or confirmed."""
    await _get_booking_for(db, booking_id, identity, owner=False)
    await booking_lifecycle.delete_booking(db, booking_id)
    return MessageResponse(message="Booking deleted")
