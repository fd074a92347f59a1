"""Booking status transition table.

Every lifecycle action is looked up here by ``(current status, action)``;
anything not listed is illegal. ``REMOVED`` marks the one action that ends
with the record being deleted rather than moving to a new status.
"""

import enum

from parkpulse.exceptions import IllegalTransitionError
from parkpulse.models.booking import BookingStatus


class BookingAction(str, enum.Enum):
    APPROVE = "approve"
    DENY = "deny"
    CANCEL_BY_REQUESTER = "cancel_by_requester"
    CANCEL_BY_OWNER = "cancel_by_owner"
    DELETE = "delete"


REMOVED = None

_P = BookingStatus.PENDING
_C = BookingStatus.CONFIRMED
_D = BookingStatus.DENIED
_CR = BookingStatus.CANCELED_BY_REQUESTER
_CO = BookingStatus.CANCELED_BY_OWNER

TRANSITIONS: dict[tuple[BookingStatus, BookingAction], BookingStatus | None] = {
    (_P, BookingAction.APPROVE): _C,
    (_P, BookingAction.DENY): _D,
    (_P, BookingAction.CANCEL_BY_REQUESTER): _CR,
    (_P, BookingAction.CANCEL_BY_OWNER): _CO,
    (_C, BookingAction.CANCEL_BY_REQUESTER): _CR,
    (_C, BookingAction.CANCEL_BY_OWNER): _CO,
    (_D, BookingAction.DELETE): REMOVED,
    (_CR, BookingAction.DELETE): REMOVED,
    (_CO, BookingAction.DELETE): REMOVED,
}

ACTIVE_STATUSES: frozenset[BookingStatus] = frozenset({_P, _C})


def next_status(current: str, action: BookingAction) -> BookingStatus | None:
    """Return the status ``action`` leads to, or ``REMOVED`` for deletion.

    Raises:
        IllegalTransitionError: if the action is not allowed from ``current``.
    """
    try:
        key = (BookingStatus(current), action)
    except ValueError:
        raise IllegalTransitionError(str(current), action.value) from None
    if key not in TRANSITIONS:
        raise IllegalTransitionError(key[0].value, action.value)
    return TRANSITIONS[key]


def is_allowed(current: str, action: BookingAction) -> bool:
    try:
        next_status(current, action)
    except IllegalTransitionError:
        return False
    return True
