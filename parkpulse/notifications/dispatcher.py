"""Event dispatcher: turns committed domain events into notifications.

Delivery is best effort: a template problem, a slow notifier or a failed
send is logged and dropped. Nothing here can turn a committed booking
transition into a reported failure.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from parkpulse.config import settings
from parkpulse.events import (
    BookingApproved,
    BookingCanceledByOwner,
    BookingCanceledByRequester,
    BookingDenied,
    BookingEvent,
    BookingRequested,
    CancellationReason,
    DomainEvent,
    ListingCreated,
    pop_events,
)
from parkpulse.notifications.notifier import Notifier, build_notifier
from parkpulse.notifications.templates import render
from parkpulse.services.intervals import total_cost

logger = logging.getLogger(__name__)

# event type -> (recipient field on the event, template)
_BOOKING_ROUTES: dict[type[BookingEvent], tuple[str, str]] = {
    BookingRequested: ("owner_contact", "booking_request"),
    BookingApproved: ("requester_contact", "booking_confirmation"),
    BookingDenied: ("requester_contact", "booking_denied"),
    BookingCanceledByRequester: ("owner_contact", "booking_cancellation"),
    BookingCanceledByOwner: ("requester_contact", "owner_cancellation"),
}


def _booking_vars(event: BookingEvent) -> dict[str, str]:
    return {
        "requester_name": event.requester_name,
        "requester_contact": event.requester_contact,
        "owner_contact": event.owner_contact,
        "location": event.location,
        "date": event.booking_date.isoformat(),
        "start_time": event.start_time,
        "end_time": event.end_time,
        "rate_per_hour": str(event.rate_per_hour),
        "total_cost": str(total_cost(event.rate_per_hour, event.start_time, event.end_time)),
        "sender": settings.notifier_sender_name,
    }


def compose(event: DomainEvent) -> tuple[str, str, str] | None:
    """Return ``(address, subject, body)`` for an event, or None if nobody is told."""
    if isinstance(event, ListingCreated):
        subject, body = render(
            "listing_confirmation",
            location=event.location,
            date=event.available_date.isoformat(),
            start_time=event.start_time,
            end_time=event.end_time,
            rate_per_hour=str(event.rate_per_hour),
            sender=settings.notifier_sender_name,
        )
        return event.contact_email, subject, body

    route = _BOOKING_ROUTES.get(type(event))
    if route is None:
        return None
    recipient_field, template = route
    if isinstance(event, BookingCanceledByOwner) and event.reason == CancellationReason.LISTING_UPDATE:
        template = "listing_update_cancellation"

    subject, body = render(template, **_booking_vars(event))
    return getattr(event, recipient_field), subject, body


class EventDispatcher:
    """Deliver notifications for domain events through a notifier."""

    def __init__(self, notifier: Notifier | None = None, timeout: float | None = None) -> None:
        self.notifier = notifier or build_notifier()
        self.timeout = timeout if timeout is not None else settings.notifier_timeout_seconds

    async def dispatch(self, event: DomainEvent) -> bool:
        """Try to deliver one event. Returns whether a message went out."""
        try:
            message = compose(event)
        except (KeyError, ValueError):
            logger.exception("Could not compose notification for %s %s", event.event_type, event.event_id)
            return False
        if message is None:
            return False

        address, subject, body = message
        if not address:
            logger.warning("No recipient for %s %s, notification skipped", event.event_type, event.event_id)
            return False

        try:
            await asyncio.wait_for(self.notifier.send(address, subject, body), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Notifier timed out after %.1fs for %s to <%s>", self.timeout, event.event_type, address)
            return False
        except Exception:
            logger.exception("Notifier failed for %s to <%s>", event.event_type, address)
            return False
        return True

    async def dispatch_all(self, events: list[DomainEvent]) -> int:
        delivered = 0
        for event in events:
            if await self.dispatch(event):
                delivered += 1
        return delivered


dispatcher = EventDispatcher()


async def dispatch_pending(db: AsyncSession) -> int:
    """Drain the session's event queue. Call only after a successful commit."""
    events = pop_events(db)
    if not events:
        return 0
    return await dispatcher.dispatch_all(events)
