"""Interval conflict resolver: pure time-of-day window arithmetic.

Windows are ``HH:MM`` start/end pairs on one calendar day. Start must be
strictly before end; windows wrapping past midnight are not supported.

Invalid input never counts as "no conflict": :func:`overlaps` reports an
overlap and :func:`contains` reports "does not fit" whenever a time cannot
be parsed, so malformed data can block a booking but never double-book a spot.
"""

import re
from decimal import ROUND_HALF_UP, Decimal

from parkpulse.exceptions import ValidationError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_CENTS = Decimal("0.01")


def to_minutes(value: str | None) -> int | None:
    """Convert ``H:MM``/``HH:MM`` (24-hour) to minutes since midnight.

    Returns ``None`` for malformed text, hours outside 0-23 or minutes
    outside 0-59. Callers must treat ``None`` as a failure, never as zero.
    """
    if not isinstance(value, str):
        return None
    match = _TIME_RE.match(value.strip())
    if match is None:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def overlaps(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """True if the two windows share an interior instant.

    Touching windows (``a_end == b_start``) do not overlap.
    """
    a0, a1, b0, b1 = (to_minutes(t) for t in (a_start, a_end, b_start, b_end))
    if a0 is None or a1 is None or b0 is None or b1 is None:
        return True
    return a0 < b1 and b0 < a1


def contains(outer_start: str, outer_end: str, inner_start: str, inner_end: str) -> bool:
    """True if the inner window lies entirely within the outer one."""
    o0, o1, i0, i1 = (to_minutes(t) for t in (outer_start, outer_end, inner_start, inner_end))
    if o0 is None or o1 is None or i0 is None or i1 is None:
        return False
    return i0 >= o0 and i1 <= o1


def parse_window(start: str, end: str) -> tuple[int, int]:
    """Validate a window and return it in minutes.

    Raises:
        ValidationError: if either time is malformed or start is not before end.
    """
    start_minutes = to_minutes(start)
    end_minutes = to_minutes(end)
    if start_minutes is None or end_minutes is None:
        raise ValidationError("Times must use the 24-hour HH:MM format (e.g. 09:00).")
    if start_minutes >= end_minutes:
        raise ValidationError("End time must be after start time on the same day.")
    return start_minutes, end_minutes


def duration_hours(start: str, end: str) -> Decimal:
    start_minutes, end_minutes = parse_window(start, end)
    return Decimal(end_minutes - start_minutes) / Decimal(60)


def total_cost(rate_per_hour: Decimal, start: str, end: str) -> Decimal:
    """Price of a window at an hourly rate, rounded to cents."""
    return (Decimal(rate_per_hour) * duration_hours(start, end)).quantize(_CENTS, rounding=ROUND_HALF_UP)
