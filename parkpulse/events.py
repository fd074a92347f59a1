"""Domain events emitted by the listing registry and booking lifecycle.

Services never talk to the notifier directly. They queue an event on the
session with :func:`emit`; the unit of work hands the queue to the
notification dispatcher once the transaction has committed.
"""

import enum
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import ClassVar

from sqlalchemy.ext.asyncio import AsyncSession

_QUEUE_KEY = "parkpulse.pending_events"


class CancellationReason(str, enum.Enum):
    """Why an owner-side cancellation happened; selects the notification."""

    OWNER = "owner"
    LISTING_UPDATE = "listing_update"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    event_type: ClassVar[str] = "event"

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["event_type"] = self.event_type
        return data


@dataclass(frozen=True, kw_only=True)
class ListingCreated(DomainEvent):
    event_type: ClassVar[str] = "listing.created"

    listing_id: uuid.UUID
    owner_id: str
    contact_email: str
    location: str
    available_date: date
    start_time: str
    end_time: str
    rate_per_hour: Decimal


@dataclass(frozen=True, kw_only=True)
class BookingEvent(DomainEvent):
    """Snapshot of the booking fields every booking notification needs."""

    booking_id: uuid.UUID
    listing_id: uuid.UUID
    requester_name: str
    requester_contact: str
    owner_contact: str
    location: str
    booking_date: date
    start_time: str
    end_time: str
    rate_per_hour: Decimal

    @classmethod
    def from_booking(cls, booking, **extra):
        return cls(
            booking_id=booking.id,
            listing_id=booking.listing_id,
            requester_name=booking.requester_name,
            requester_contact=booking.requester_contact,
            owner_contact=booking.owner_contact,
            location=booking.location,
            booking_date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            rate_per_hour=booking.rate_per_hour,
            **extra,
        )


@dataclass(frozen=True, kw_only=True)
class BookingRequested(BookingEvent):
    event_type: ClassVar[str] = "booking.requested"


@dataclass(frozen=True, kw_only=True)
class BookingApproved(BookingEvent):
    event_type: ClassVar[str] = "booking.approved"


@dataclass(frozen=True, kw_only=True)
class BookingDenied(BookingEvent):
    event_type: ClassVar[str] = "booking.denied"


@dataclass(frozen=True, kw_only=True)
class BookingCanceledByRequester(BookingEvent):
    event_type: ClassVar[str] = "booking.canceled_by_requester"


@dataclass(frozen=True, kw_only=True)
class BookingCanceledByOwner(BookingEvent):
    event_type: ClassVar[str] = "booking.canceled_by_owner"

    reason: CancellationReason = CancellationReason.OWNER


def emit(db: AsyncSession, event: DomainEvent) -> None:
    """Queue an event for dispatch after the session commits."""
    db.info.setdefault(_QUEUE_KEY, []).append(event)


def pending_events(db: AsyncSession) -> list[DomainEvent]:
    """Events queued on the session and not yet dispatched."""
    return list(db.info.get(_QUEUE_KEY, []))


def pop_events(db: AsyncSession) -> list[DomainEvent]:
    return db.info.pop(_QUEUE_KEY, [])


def discard_events(db: AsyncSession) -> None:
    db.info.pop(_QUEUE_KEY, None)
