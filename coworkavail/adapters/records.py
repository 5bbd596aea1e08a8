"""
Conversion of raw booking records (API payloads, data files) into domain bookings.
"""

from typing import Any, Dict, Iterable, List

import pendulum
from pendulum import DateTime

from ..domain.models import Booking, BookingStatus, TimeInterval


def parse_datetime(value: Any, timezone: str) -> DateTime:
    """
    Parse an ISO 8601 string into a pendulum DateTime.

    Strings without an offset are read in ``timezone``.
    """
    dt = pendulum.parse(str(value), tz=timezone)

    if isinstance(dt, DateTime):
        return dt

    raise ValueError(f"Could not parse datetime: {value}")


def booking_from_record(record: Dict[str, Any], timezone: str = "UTC") -> Booking:
    """
    Build a Booking from a record.

    Accepts both the booking API's camelCase keys (``_id``, ``spaceId``,
    ``startTime``, ``endTime``) and snake_case keys.

    Raises:
        KeyError: If a required key is missing
        ValueError: If times or status cannot be parsed
    """
    booking_id = record.get("_id", record.get("id"))
    space_id = record.get("spaceId", record.get("space_id"))
    if booking_id is None or space_id is None:
        raise KeyError("Booking record needs an id and a space id")

    start = parse_datetime(record.get("startTime", record.get("start")), timezone)
    end = parse_datetime(record.get("endTime", record.get("end")), timezone)

    return Booking(
        id=str(booking_id),
        space_id=str(space_id),
        interval=TimeInterval(start=start, end=end),
        status=BookingStatus(record.get("status", BookingStatus.CONFIRMED.value)),
    )


def select_bookings(
    bookings: Iterable[Booking],
    space_id: str,
    window_start: DateTime,
    window_end: DateTime,
    exclude_id: str | None = None,
) -> List[Booking]:
    """Confirmed bookings of one space overlapping [window_start, window_end)."""
    return [
        booking for booking in bookings
        if booking.space_id == space_id
        and booking.is_confirmed
        and booking.id != exclude_id
        and booking.interval.start < window_end
        and booking.interval.end > window_start
    ]
