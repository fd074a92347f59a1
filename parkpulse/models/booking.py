"""Booking model: a requester's reservation against a listing."""

import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import Date, Index, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from parkpulse.database import Base, UUIDPrimaryKeyMixin


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DENIED = "denied"
    CANCELED_BY_REQUESTER = "canceled_by_requester"
    CANCELED_BY_OWNER = "canceled_by_owner"


def _utcnow_naive() -> datetime:
    # Naive UTC, microsecond precision so same-second requests keep their order
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Booking(UUIDPrimaryKeyMixin, Base):
    """A reservation request.

    ``listing_id`` is a weak reference: the listing may be edited (or cascade
    its bookings) independently. ``rate_per_hour``, ``location`` and
    ``owner_contact`` are snapshots taken at request time and are never
    recomputed from the live listing.
    """

    __tablename__ = "bookings"

    listing_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)

    requester_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False)
    requester_contact: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    owner_contact: Mapped[str] = mapped_column(String(255), nullable=False)

    location: Mapped[str] = mapped_column(String(512), nullable=False)
    booking_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    rate_per_hour: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(50),
        default=BookingStatus.PENDING.value,
        index=True,
    )  # pending, confirmed, denied, canceled_by_requester, canceled_by_owner

    created_at: Mapped[datetime] = mapped_column(default=_utcnow_naive)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (Index("ix_bookings_listing_date", "listing_id", "date"),)

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, listing_id={self.listing_id}, requester_id={self.requester_id!r}, "
            f"status={self.status})>"
        )
