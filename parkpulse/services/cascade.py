"""Cascade coordinator: cancel bookings a listing edit leaves stranded."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parkpulse.events import CancellationReason
from parkpulse.exceptions import ParkPulseError
from parkpulse.models.listing import Listing
from parkpulse.services.booking_lifecycle import cancel_by_owner, list_bookings_for_listing_date
from parkpulse.services.intervals import contains
from parkpulse.services.state_machine import ACTIVE_STATUSES

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    canceled: list[uuid.UUID] = field(default_factory=list)
    failed: list[uuid.UUID] = field(default_factory=list)


async def cascade_listing_change(
    db: AsyncSession,
    listing: Listing,
    new_date: date,
    new_start: str,
    new_end: str,
) -> CascadeResult:
    """Force owner-side cancellation of active bookings outside the new window.

    Must run before ``listing`` is mutated: it looks up the bookings of the
    listing's current (previous) date. Each cancellation runs in its own
    SAVEPOINT, so one failing booking is recorded in ``failed`` and the
    rest, and the listing edit itself, still go through.
    """
    result = CascadeResult()
    listing_id = listing.id
    bookings = await list_bookings_for_listing_date(db, listing_id, listing.available_date)

    active = {s.value for s in ACTIVE_STATUSES}
    # Plain values only: a rolled-back SAVEPOINT may expire the ORM objects.
    candidates = [
        (b.id, b.booking_date, b.start_time, b.end_time) for b in bookings if b.status in active
    ]

    for booking_id, booking_date, start_time, end_time in candidates:
        if booking_date == new_date and contains(new_start, new_end, start_time, end_time):
            continue

        try:
            async with db.begin_nested():
                await cancel_by_owner(db, booking_id, reason=CancellationReason.LISTING_UPDATE)
        except (ParkPulseError, SQLAlchemyError):
            logger.exception(
                "Could not cancel booking %s stranded by edit of listing %s; needs manual follow-up",
                booking_id,
                listing_id,
            )
            result.failed.append(booking_id)
            continue
        result.canceled.append(booking_id)

    return result
