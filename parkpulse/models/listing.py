"""Listing model: one parking spot offered for one day and time window."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from parkpulse.database import Base, UUIDPrimaryKeyMixin


class Listing(UUIDPrimaryKeyMixin, Base):
    """An owner's availability window for a spot, at a fixed hourly rate."""

    __tablename__ = "listings"

    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(120), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(120), nullable=False)

    rate_per_hour: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    available_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM

    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)

    # Bumped by every approval and every listing edit; approvals commit only
    # if it still holds the value read before their conflict scan.
    schedule_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_listings_spot_date", "address", "city", "zip_code", "available_date"),
    )

    @property
    def location(self) -> str:
        return f"{self.address}, {self.city}, {self.state} {self.zip_code}"

    def __repr__(self) -> str:
        return (
            f"<Listing(id={self.id}, owner_id={self.owner_id!r}, date={self.available_date}, "
            f"window={self.start_time}-{self.end_time})>"
        )
