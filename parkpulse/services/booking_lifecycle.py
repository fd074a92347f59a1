"""Booking lifecycle manager: the only writer of booking records.

Every status change is looked up in the transition table and then written
with a conditional UPDATE gated on the status the caller saw, so a booking
that changed underneath a transition is never silently overwritten.

Approval is the single conflict gate of the system. It scans every other
confirmed booking on the same listing and day, then commits only if the
listing's ``schedule_version`` is still the value read before the scan. A
concurrent approval (or listing edit) on the same listing bumps that version
and makes the slower commit fail with ``ConcurrentUpdateError``.
"""

import logging
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from parkpulse.config import settings
from parkpulse.events import (
    BookingApproved,
    BookingCanceledByOwner,
    BookingCanceledByRequester,
    BookingDenied,
    BookingRequested,
    CancellationReason,
    emit,
)
from parkpulse.exceptions import ConcurrentUpdateError, ConflictError, NotFoundError, ValidationError
from parkpulse.models.booking import Booking, BookingStatus
from parkpulse.models.listing import Listing
from parkpulse.services.intervals import contains, overlaps, parse_window
from parkpulse.services.state_machine import BookingAction, next_status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _load_listing(db: AsyncSession, listing_id: uuid.UUID) -> Listing:
    listing = await db.get(Listing, listing_id, populate_existing=True)
    if listing is None:
        raise NotFoundError("Listing not found")
    return listing


async def _apply_transition(db: AsyncSession, booking: Booking, action: BookingAction) -> Booking:
    """Move ``booking`` along ``action`` if nobody changed it in the meantime."""
    seen_status = booking.status
    new_status = next_status(seen_status, action)

    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.status == seen_status)
        .values(status=new_status.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConcurrentUpdateError("This booking was changed by someone else. Refresh and try again.")

    await db.refresh(booking)
    logger.info("Booking %s: %s -> %s (%s)", booking.id, seen_status, new_status.value, action.value)
    return booking


async def _commit_approval(
    db: AsyncSession,
    booking: Booking,
    seen_version: int,
) -> Booking:
    """Confirm ``booking`` only if its listing's schedule is unchanged.

    Both conditional writes share one SAVEPOINT: if either guard fails,
    neither change persists.
    """
    async with db.begin_nested():
        bumped = await db.execute(
            update(Listing)
            .where(Listing.id == booking.listing_id, Listing.schedule_version == seen_version)
            .values(schedule_version=Listing.schedule_version + 1)
            .execution_options(synchronize_session=False)
        )
        if bumped.rowcount != 1:
            raise ConcurrentUpdateError(
                "Another booking on this listing was just approved or the listing changed. Please review again."
            )
        await _apply_transition(db, booking, BookingAction.APPROVE)
    return booking


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_booking(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    booking = await db.get(Booking, booking_id, populate_existing=True)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


async def list_bookings_for_listing_date(db: AsyncSession, listing_id: uuid.UUID, booking_date) -> list[Booking]:
    """Every booking on a listing for one day, regardless of status."""
    result = await db.execute(
        select(Booking).where(Booking.listing_id == listing_id, Booking.booking_date == booking_date)
    )
    return list(result.scalars().all())


async def list_requester_bookings(db: AsyncSession, requester_id: str) -> list[Booking]:
    """A requester's bookings, latest day first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.requester_id == requester_id)
        .order_by(Booking.booking_date.desc(), Booking.start_time)
    )
    return list(result.scalars().all())


async def list_owner_requests(db: AsyncSession, owner_id: str) -> list[Booking]:
    """Pending requests awaiting the owner's decision, oldest first.

    Filters on equality only and sorts in memory, so no compound index on
    ``(owner_id, status, created_at)`` is required.
    """
    result = await db.execute(
        select(Booking).where(Booking.owner_id == owner_id, Booking.status == BookingStatus.PENDING.value)
    )
    requests = list(result.scalars().all())
    requests.sort(key=lambda b: b.created_at)
    return requests


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def request_booking(
    db: AsyncSession,
    listing_id: uuid.UUID,
    requester_id: str,
    requester_name: str,
    requester_contact: str,
    start_time: str,
    end_time: str,
) -> Booking:
    """Create a ``pending`` booking for a window of a listing.

    Other requesters' bookings are not checked here; the owner's approval is
    where conflicts are resolved.

    Raises:
        ValidationError: malformed or inverted window, or a window outside
            the listing's advertised hours.
        NotFoundError: unknown listing.
    """
    parse_window(start_time, end_time)
    listing = await _load_listing(db, listing_id)
    if not contains(listing.start_time, listing.end_time, start_time, end_time):
        raise ValidationError(
            f"Please select a time within the available window ({listing.start_time} - {listing.end_time})."
        )

    booking = Booking(
        listing_id=listing.id,
        requester_id=requester_id,
        requester_name=requester_name,
        requester_contact=requester_contact,
        owner_id=listing.owner_id,
        owner_contact=listing.contact_email,
        location=listing.location,
        booking_date=listing.available_date,
        start_time=start_time,
        end_time=end_time,
        rate_per_hour=listing.rate_per_hour,
        status=BookingStatus.PENDING.value,
    )
    db.add(booking)
    await db.flush()
    await db.refresh(booking)

    logger.info(
        "Booking %s requested by %s for listing %s on %s %s-%s",
        booking.id,
        requester_id,
        listing.id,
        booking.booking_date,
        start_time,
        end_time,
    )
    emit(db, BookingRequested.from_booking(booking))
    return booking


async def approve_booking(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    """Confirm a pending booking if it clashes with no confirmed booking.

    Raises:
        IllegalTransitionError: booking is not ``pending``.
        ConflictError: overlaps a confirmed booking, or no longer fits the
            listing's current date/window. The booking stays ``pending``.
        ConcurrentUpdateError: the listing or booking changed during approval.
    """
    booking = await get_booking(db, booking_id)
    next_status(booking.status, BookingAction.APPROVE)

    listing = await _load_listing(db, booking.listing_id)
    seen_version = listing.schedule_version

    if settings.recheck_window_on_approval and (
        booking.booking_date != listing.available_date
        or not contains(listing.start_time, listing.end_time, booking.start_time, booking.end_time)
    ):
        raise ConflictError("This request no longer fits the listing's availability window.")

    confirmed = await db.execute(
        select(Booking).where(
            Booking.listing_id == booking.listing_id,
            Booking.booking_date == booking.booking_date,
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.id != booking.id,
        )
    )
    clashes = [
        other
        for other in confirmed.scalars().all()
        if overlaps(booking.start_time, booking.end_time, other.start_time, other.end_time)
    ]
    if clashes:
        logger.info(
            "Approval of booking %s refused: overlaps confirmed booking(s) %s",
            booking.id,
            ", ".join(str(c.id) for c in clashes),
        )
        raise ConflictError("Approval failed: conflicts with an existing confirmed booking.")

    await _commit_approval(db, booking, seen_version)
    emit(db, BookingApproved.from_booking(booking))
    return booking


async def deny_booking(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    booking = await get_booking(db, booking_id)
    await _apply_transition(db, booking, BookingAction.DENY)
    emit(db, BookingDenied.from_booking(booking))
    return booking


async def cancel_by_requester(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    booking = await get_booking(db, booking_id)
    await _apply_transition(db, booking, BookingAction.CANCEL_BY_REQUESTER)
    emit(db, BookingCanceledByRequester.from_booking(booking))
    return booking


async def cancel_by_owner(
    db: AsyncSession,
    booking_id: uuid.UUID,
    reason: CancellationReason = CancellationReason.OWNER,
) -> Booking:
    """Cancel on the owner's side.

    ``reason`` selects the requester's notification: a plain owner
    cancellation, or one forced by an edit of the listing.
    """
    booking = await get_booking(db, booking_id)
    await _apply_transition(db, booking, BookingAction.CANCEL_BY_OWNER)
    emit(db, BookingCanceledByOwner.from_booking(booking, reason=reason))
    return booking


async def delete_booking(db: AsyncSession, booking_id: uuid.UUID) -> None:
    """Physically remove a denied or canceled booking.

    Raises:
        IllegalTransitionError: booking is still ``pending`` or ``confirmed``.
    """
    booking = await get_booking(db, booking_id)
    seen_status = booking.status
    next_status(seen_status, BookingAction.DELETE)

    result = await db.execute(
        delete(Booking)
        .where(Booking.id == booking.id, Booking.status == seen_status)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConcurrentUpdateError("This booking was changed by someone else. Refresh and try again.")

    db.expunge(booking)
    logger.info("Booking %s deleted (was %s)", booking_id, seen_status)
