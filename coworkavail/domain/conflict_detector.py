"""
Collision checks between a candidate interval and existing bookings.
"""

from typing import Iterable, List

from .models import Booking, ConflictEntry, TimeInterval


def confirmed_only(bookings: Iterable[Booking]) -> List[Booking]:
    """Drop bookings that do not block the space (pending, cancelled, ...)."""
    return [booking for booking in bookings if booking.is_confirmed]


def has_any_overlap(interval: TimeInterval, bookings: Iterable[Booking]) -> bool:
    """Check whether any confirmed booking overlaps the interval."""
    return any(booking.interval.overlaps(interval) for booking in confirmed_only(bookings))


def detect_conflicts(
    interval: TimeInterval,
    bookings: Iterable[Booking],
    buffer_minutes: int,
    timezone: str = "UTC",
) -> List[ConflictEntry]:
    """
    Find every confirmed booking the interval overlaps or sits too close to.

    Each booking is tested on its own, so one candidate can collect several
    conflicts. A buffer conflict is only reported when the booking does not
    already overlap. Adjacent intervals (a gap of zero) count as a buffer
    violation whenever a buffer is configured. Testing ``0 < gap`` instead
    would let back-to-back bookings through with no buffer at all.

    Args:
        interval: Candidate interval
        bookings: Existing bookings of the same space
        buffer_minutes: Required gap between bookings
        timezone: Zone used to render times in messages

    Returns:
        List of overlap and buffer conflicts in booking order
    """
    conflicts: List[ConflictEntry] = []

    for booking in confirmed_only(bookings):
        gap = interval.gap_minutes(booking.interval)

        if gap is None:
            local = booking.interval.in_timezone(timezone)
            conflicts.append(ConflictEntry.overlap(
                booking.id,
                f"Conflicts with existing booking from {local.start.format('HH:mm')} "
                f"to {local.end.format('HH:mm')}",
            ))
        elif gap < buffer_minutes:
            conflicts.append(ConflictEntry.buffer(
                booking.id,
                f"Too close to existing booking ({gap:g} min gap). "
                f"{buffer_minutes} minute buffer required",
                buffer_minutes,
            ))

    return conflicts
