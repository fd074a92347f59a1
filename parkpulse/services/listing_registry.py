"""Listing registry: create, edit and query availability windows.

The registry is the only writer of listings. Edits that move or shrink a
window go through the cascade coordinator first so no booking is stranded
outside the new window.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parkpulse.events import ListingCreated, emit
from parkpulse.exceptions import DuplicateListingError, NotFoundError, ValidationError
from parkpulse.models.listing import Listing
from parkpulse.schemas.listing import ListingCreate, ListingUpdate
from parkpulse.services.cascade import cascade_listing_change
from parkpulse.services.intervals import overlaps, parse_window

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "address",
    "city",
    "state",
    "zip_code",
    "country",
    "rate_per_hour",
    "available_date",
    "start_time",
    "end_time",
    "contact_email",
    "description",
}

# Only these may be cleared by sending null.
_NULLABLE_FIELDS = {"description"}


@dataclass
class ListingUpdateResult:
    """Outcome of an edit, including any bookings it forced out."""

    listing: Listing
    canceled_booking_ids: list[uuid.UUID] = field(default_factory=list)
    failed_booking_ids: list[uuid.UUID] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed_booking_ids)


def _validate_terms(rate_per_hour, start_time: str, end_time: str) -> None:
    if rate_per_hour is None or rate_per_hour <= 0:
        raise ValidationError("Rate must be a positive number.")
    parse_window(start_time, end_time)


async def _check_duplicate(
    db: AsyncSession,
    address: str,
    city: str,
    zip_code: str,
    available_date: date,
    start_time: str,
    end_time: str,
    exclude_listing_id: uuid.UUID | None = None,
) -> None:
    """Raise if the same spot is already listed for overlapping hours that day."""
    query = select(Listing).where(
        Listing.address == address,
        Listing.city == city,
        Listing.zip_code == zip_code,
        Listing.available_date == available_date,
    )
    if exclude_listing_id is not None:
        query = query.where(Listing.id != exclude_listing_id)

    result = await db.execute(query)
    for existing in result.scalars().all():
        if overlaps(start_time, end_time, existing.start_time, existing.end_time):
            raise DuplicateListingError("A listing with this address and overlapping times already exists.")


async def get_listing(db: AsyncSession, listing_id: uuid.UUID) -> Listing:
    listing = await db.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError("Listing not found")
    return listing


async def create_listing(db: AsyncSession, owner_id: str, data: ListingCreate) -> Listing:
    """Create a listing owned by ``owner_id``.

    Raises:
        ValidationError: non-positive rate or inverted/malformed window.
        DuplicateListingError: the spot is already listed for overlapping hours.
    """
    _validate_terms(data.rate_per_hour, data.start_time, data.end_time)
    await _check_duplicate(
        db,
        data.address,
        data.city,
        data.zip_code,
        data.available_date,
        data.start_time,
        data.end_time,
    )

    listing = Listing(owner_id=owner_id, **data.model_dump())
    db.add(listing)
    await db.flush()
    await db.refresh(listing)

    logger.info("Created listing %s for owner %s on %s", listing.id, owner_id, listing.available_date)
    emit(
        db,
        ListingCreated(
            listing_id=listing.id,
            owner_id=listing.owner_id,
            contact_email=listing.contact_email,
            location=listing.location,
            available_date=listing.available_date,
            start_time=listing.start_time,
            end_time=listing.end_time,
            rate_per_hour=listing.rate_per_hour,
        ),
    )
    return listing


async def update_listing(db: AsyncSession, listing_id: uuid.UUID, data: ListingUpdate) -> ListingUpdateResult:
    """Apply an owner's edit to a listing.

    Bookings of the listing as it was before the edit that no longer fit the
    new date/window are force-canceled first. A cancellation that fails to
    save does not block the edit; it is reported in ``failed_booking_ids``.
    """
    listing = await get_listing(db, listing_id)
    update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if k in _EDITABLE_FIELDS}
    cleared = sorted(name for name, value in update_data.items() if value is None and name not in _NULLABLE_FIELDS)
    if cleared:
        raise ValidationError(f"These fields cannot be cleared: {', '.join(cleared)}.")

    effective = {name: update_data.get(name, getattr(listing, name)) for name in _EDITABLE_FIELDS}
    _validate_terms(effective["rate_per_hour"], effective["start_time"], effective["end_time"])

    spot_or_schedule_changed = any(
        name in update_data
        for name in ("address", "city", "zip_code", "available_date", "start_time", "end_time")
    )
    if spot_or_schedule_changed:
        await _check_duplicate(
            db,
            effective["address"],
            effective["city"],
            effective["zip_code"],
            effective["available_date"],
            effective["start_time"],
            effective["end_time"],
            exclude_listing_id=listing.id,
        )

    cascade = await cascade_listing_change(
        db,
        listing,
        new_date=effective["available_date"],
        new_start=effective["start_time"],
        new_end=effective["end_time"],
    )
    if cascade.failed:
        await db.refresh(listing)

    for name, value in update_data.items():
        setattr(listing, name, value)
    listing.schedule_version = Listing.schedule_version + 1

    db.add(listing)
    await db.flush()
    await db.refresh(listing)

    logger.info(
        "Updated listing %s (%d booking(s) canceled, %d failed)",
        listing.id,
        len(cascade.canceled),
        len(cascade.failed),
    )
    return ListingUpdateResult(
        listing=listing,
        canceled_booking_ids=cascade.canceled,
        failed_booking_ids=cascade.failed,
    )


async def list_marketplace_listings(db: AsyncSession, limit: int = 100) -> list[Listing]:
    """All listings, newest availability date first."""
    result = await db.execute(
        select(Listing).order_by(Listing.available_date.desc(), Listing.start_time).limit(limit)
    )
    return list(result.scalars().all())


async def list_owner_listings(db: AsyncSession, owner_id: str) -> list[Listing]:
    result = await db.execute(
        select(Listing).where(Listing.owner_id == owner_id).order_by(Listing.available_date.desc())
    )
    return list(result.scalars().all())
