"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from parkpulse.schemas.listing import TIME_PATTERN
from parkpulse.services.intervals import to_minutes, total_cost

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingRequestCreate(BaseModel):
    """Schema for requesting a time window on a listing."""

    start_time: str = Field(..., pattern=TIME_PATTERN, examples=["10:00"])
    end_time: str = Field(..., pattern=TIME_PATTERN, examples=["12:00"])

    @model_validator(mode="after")
    def check_window(self) -> "BookingRequestCreate":
        """Validate that end_time is strictly after start_time."""
        if to_minutes(self.end_time) <= to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    """Standard booking response returned from lifecycle operations."""

    id: uuid.UUID
    listing_id: uuid.UUID
    requester_id: str
    requester_name: str
    requester_contact: str
    owner_id: str
    owner_contact: str
    location: str
    booking_date: date
    start_time: str
    end_time: str
    rate_per_hour: Decimal
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_cost(self) -> Decimal:
        return total_cost(self.rate_per_hour, self.start_time, self.end_time)


class BookingListResponse(BaseModel):
    """List of bookings."""

    items: list[BookingResponse]
    total: int


class MessageResponse(BaseModel):
    """Simple acknowledgement."""

    message: str
