"""SQLAlchemy models for ParkPulse.

All models are imported here so that ``Base.metadata`` knows every table
before ``create_all`` runs. If you add a new model, import it in this file.
"""

from parkpulse.models.booking import Booking, BookingStatus
from parkpulse.models.listing import Listing

__all__ = [
    "Booking",
    "BookingStatus",
    "Listing",
]
