"""
Tests for slot grid generation.
"""

from datetime import date, time

import pendulum

from coworkavail.domain.models import Booking, BookingStatus, PeakWindow, RuleSet, TimeInterval
from coworkavail.domain.slot_generator import SlotGenerator


def _booking(booking_id: str, start: str, end: str, status: BookingStatus = BookingStatus.CONFIRMED, tz: str = "UTC") -> Booking:
    return Booking(
        id=booking_id,
        space_id="room-a",
        interval=TimeInterval(start=pendulum.parse(start, tz=tz), end=pendulum.parse(end, tz=tz)),
        status=status,
    )


class TestSlotGenerator:
    """Tests for SlotGenerator."""

    def test_empty_day_is_fully_available(self):
        generator = SlotGenerator(RuleSet(open_time=time(9, 0), close_time=time(18, 0)))

        slots = generator.generate_day(date(2024, 11, 25), [])

        assert len(slots) == 18
        assert all(slot.available for slot in slots)
        assert slots[0].start == pendulum.parse("2024-11-25 09:00")
        assert slots[-1].end == pendulum.parse("2024-11-25 18:00")

    def test_slots_are_contiguous_and_cover_window(self):
        rules = RuleSet(open_time=time(8, 30), close_time=time(20, 0))

        slots = SlotGenerator(rules).generate_day(date(2024, 11, 25), [])

        assert len(slots) == (20 * 60 - (8 * 60 + 30)) // 30
        for previous, current in zip(slots, slots[1:]):
            assert previous.end == current.start
            assert current.interval.duration_minutes() == 30
        assert slots[0].start == rules.day_open(date(2024, 11, 25))
        assert slots[-1].end == rules.day_close(date(2024, 11, 25))

    def test_booked_slots_are_unavailable(self):
        generator = SlotGenerator(RuleSet())
        bookings = [_booking("b1", "2024-11-25 10:00", "2024-11-25 11:00")]

        slots = generator.generate_day(date(2024, 11, 25), bookings)
        busy = [slot.start.format("HH:mm") for slot in slots if not slot.available]

        assert busy == ["10:00", "10:30"]
        assert slots[2].reason == "Booking conflict"
        assert slots[1].reason is None

    def test_partial_booking_blocks_touched_slots(self):
        bookings = [_booking("b1", "2024-11-25 10:15", "2024-11-25 10:45")]

        slots = SlotGenerator(RuleSet()).generate_day(date(2024, 11, 25), bookings)
        busy = [slot.start.format("HH:mm") for slot in slots if not slot.available]

        assert busy == ["10:00", "10:30"]

    def test_buffer_not_applied_to_grid(self):
        """Slots right next to a booking stay available."""
        bookings = [_booking("b1", "2024-11-25 10:00", "2024-11-25 11:00")]

        slots = SlotGenerator(RuleSet(buffer_minutes=30)).generate_day(date(2024, 11, 25), bookings)

        assert slots[1].available  # 09:30 - 10:00
        assert slots[4].available  # 11:00 - 11:30

    def test_unconfirmed_bookings_ignored(self):
        bookings = [_booking("p1", "2024-11-25 10:00", "2024-11-25 11:00", BookingStatus.PENDING)]

        slots = SlotGenerator(RuleSet()).generate_day(date(2024, 11, 25), bookings)

        assert all(slot.available for slot in slots)

    def test_other_days_ignored(self):
        bookings = [_booking("b1", "2024-11-26 10:00", "2024-11-26 11:00")]

        slots = SlotGenerator(RuleSet()).generate_day(date(2024, 11, 25), bookings)

        assert all(slot.available for slot in slots)

    def test_peak_slots_marked(self):
        rules = RuleSet(peak_window=PeakWindow(start=time(12, 0), end=time(14, 0)))

        slots = SlotGenerator(rules).generate_day(date(2024, 11, 25), [])
        peak = [slot.start.format("HH:mm") for slot in slots if slot.is_peak]

        assert peak == ["12:00", "12:30", "13:00", "13:30"]

    def test_timezone_and_dst_day(self):
        """Local opening hours hold on the day clocks go forward."""
        rules = RuleSet(timezone="Europe/Berlin")
        bookings = [_booking("b1", "2024-03-31 10:00", "2024-03-31 11:00", tz="Europe/Berlin")]

        slots = SlotGenerator(rules).generate_day(date(2024, 3, 31), bookings)

        assert len(slots) == 18
        assert slots[0].start == pendulum.parse("2024-03-31 07:00")
        assert not slots[2].available

    def test_deterministic(self):
        generator = SlotGenerator(RuleSet())
        bookings = [_booking("b1", "2024-11-25 10:00", "2024-11-25 11:00")]

        assert generator.generate_day(date(2024, 11, 25), bookings) == generator.generate_day(date(2024, 11, 25), bookings)
