"""Pydantic v2 request/response schemas for listing endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field

TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ListingCreate(BaseModel):
    """Schema for offering a spot for one day and time window."""

    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=120)
    state: str = Field(..., min_length=1, max_length=120)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=120)
    rate_per_hour: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    available_date: date
    start_time: str = Field(..., pattern=TIME_PATTERN, examples=["09:00"])
    end_time: str = Field(..., pattern=TIME_PATTERN, examples=["17:00"])
    contact_email: EmailStr
    description: str | None = Field(None, max_length=200)


class ListingUpdate(BaseModel):
    """Schema for partially updating a listing. ``owner_id`` is never editable."""

    address: str | None = Field(None, min_length=1, max_length=255)
    city: str | None = Field(None, min_length=1, max_length=120)
    state: str | None = Field(None, min_length=1, max_length=120)
    zip_code: str | None = Field(None, min_length=1, max_length=20)
    country: str | None = Field(None, min_length=1, max_length=120)
    rate_per_hour: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    available_date: date | None = None
    start_time: str | None = Field(None, pattern=TIME_PATTERN)
    end_time: str | None = Field(None, pattern=TIME_PATTERN)
    contact_email: EmailStr | None = None
    description: str | None = Field(None, max_length=200)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ListingResponse(BaseModel):
    """Public listing information returned from the API."""

    id: uuid.UUID
    owner_id: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    rate_per_hour: Decimal
    available_date: date
    start_time: str
    end_time: str
    contact_email: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def location(self) -> str:
        return f"{self.address}, {self.city}, {self.state} {self.zip_code}"


class ListingListResponse(BaseModel):
    """List of listings."""

    items: list[ListingResponse]
    total: int


class ListingUpdateResponse(BaseModel):
    """Updated listing plus the bookings the edit forced out of its window.

    ``partial`` is true when at least one forced cancellation could not be
    saved; those booking ids are in ``failed_booking_ids`` for manual follow-up.
    """

    listing: ListingResponse
    canceled_booking_ids: list[uuid.UUID]
    failed_booking_ids: list[uuid.UUID]
    partial: bool
