"""
Time-based policies for changing bookings that already exist.
"""

from dataclasses import dataclass
from typing import Optional

from pendulum import DateTime

MODIFICATION_NOTICE_HOURS = 4
CANCELLATION_NOTICE_HOURS = 2


@dataclass(frozen=True)
class BookingChangeDecision:
    """Whether a booking may still be changed, and how much notice is left."""
    allowed: bool
    hours_remaining: float
    reason: Optional[str] = None


def _decide(start: DateTime, now: DateTime, minimum_hours: float, action: str) -> BookingChangeDecision:
    hours_until = (start - now).total_seconds() / 3600

    if hours_until < minimum_hours:
        return BookingChangeDecision(
            allowed=False,
            hours_remaining=max(0.0, hours_until),
            reason=f"Bookings cannot be {action} less than {minimum_hours:g} hours before start time",
        )

    return BookingChangeDecision(allowed=True, hours_remaining=hours_until)


def can_modify_booking(
    start: DateTime,
    now: DateTime,
    minimum_hours: float = MODIFICATION_NOTICE_HOURS,
) -> BookingChangeDecision:
    """Check whether a booking starting at ``start`` may still be modified."""
    return _decide(start, now, minimum_hours, "modified")


def can_cancel_booking(
    start: DateTime,
    now: DateTime,
    minimum_hours: float = CANCELLATION_NOTICE_HOURS,
) -> BookingChangeDecision:
    """Check whether a booking starting at ``start`` may still be cancelled."""
    return _decide(start, now, minimum_hours, "cancelled")
