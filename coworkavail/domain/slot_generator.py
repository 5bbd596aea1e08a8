"""
Day grid generation for calendar views.

Pure domain logic: takes the bookings it is given and never fetches any.
"""

from datetime import date as Date
from typing import Iterable, List

from .conflict_detector import has_any_overlap
from .models import SLOT_MINUTES, Booking, RuleSet, Slot, TimeInterval


class SlotGenerator:
    """
    Splits a day's operating window into fixed 30-minute slots.

    Algorithm:
    1. Start at the opening time of the day
    2. Step in 30-minute increments until the next slot would end after closing
    3. Mark each slot available unless a confirmed booking overlaps it

    Buffer time is not applied here. The grid shows raw
    occupancy; buffers are enforced only when a booking is checked.
    """

    def __init__(self, rules: RuleSet):
        self.rules = rules

    def generate_day(self, day: Date, bookings: Iterable[Booking]) -> List[Slot]:
        """
        Build the slot grid for one day.

        Args:
            day: Calendar date in the rule set's time zone
            bookings: Existing bookings of the space

        Returns:
            Slots ordered by start time covering exactly [open, close)
        """
        window = self.rules.operating_window(day)
        relevant = [booking for booking in bookings if booking.interval.overlaps(window)]

        slots: List[Slot] = []
        current = window.start

        while current.add(minutes=SLOT_MINUTES) <= window.end:
            slot_interval = TimeInterval(start=current, end=current.add(minutes=SLOT_MINUTES))
            available = not has_any_overlap(slot_interval, relevant)

            slots.append(Slot(
                interval=slot_interval,
                available=available,
                reason=None if available else "Booking conflict",
                is_peak=self.rules.is_peak(slot_interval.start),
            ))

            current = slot_interval.end

        return slots
