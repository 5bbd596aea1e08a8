"""
Tests for overlap and buffer conflict detection.
"""

import pendulum

from coworkavail.domain.conflict_detector import detect_conflicts, has_any_overlap
from coworkavail.domain.models import Booking, BookingStatus, ConflictKind, TimeInterval


def _interval(start: str, end: str) -> TimeInterval:
    return TimeInterval(start=pendulum.parse(start), end=pendulum.parse(end))


def _booking(booking_id: str, start: str, end: str, status: BookingStatus = BookingStatus.CONFIRMED) -> Booking:
    return Booking(id=booking_id, space_id="room-a", interval=_interval(start, end), status=status)


EXISTING = [_booking("b1", "2024-11-25 10:00", "2024-11-25 11:00")]


class TestDetectConflicts:
    """Tests for detect_conflicts."""

    def test_identical_interval_overlaps(self):
        conflicts = detect_conflicts(_interval("2024-11-25 10:00", "2024-11-25 11:00"), EXISTING, 15)

        assert len(conflicts) == 1
        assert conflicts[0].kind is ConflictKind.OVERLAP
        assert conflicts[0].conflicting_booking_id == "b1"
        assert conflicts[0].message == "Conflicts with existing booking from 10:00 to 11:00"

    def test_partial_overlap(self):
        conflicts = detect_conflicts(_interval("2024-11-25 10:30", "2024-11-25 12:00"), EXISTING, 0)

        assert [c.kind for c in conflicts] == [ConflictKind.OVERLAP]

    def test_adjacent_is_buffer_not_overlap(self):
        conflicts = detect_conflicts(_interval("2024-11-25 11:00", "2024-11-25 12:00"), EXISTING, 15)

        assert [c.kind for c in conflicts] == [ConflictKind.BUFFER]

    def test_adjacent_without_buffer_is_fine(self):
        assert detect_conflicts(_interval("2024-11-25 11:00", "2024-11-25 12:00"), EXISTING, 0) == []
        assert detect_conflicts(_interval("2024-11-25 09:00", "2024-11-25 10:00"), EXISTING, 0) == []

    def test_gap_below_buffer(self):
        conflicts = detect_conflicts(_interval("2024-11-25 11:05", "2024-11-25 12:00"), EXISTING, 15)

        assert len(conflicts) == 1
        assert conflicts[0].kind is ConflictKind.BUFFER
        assert conflicts[0].conflicting_booking_id == "b1"
        assert conflicts[0].message == "Too close to existing booking (5 min gap). 15 minute buffer required"

    def test_gap_before_booking_below_buffer(self):
        conflicts = detect_conflicts(_interval("2024-11-25 09:00", "2024-11-25 09:50"), EXISTING, 15)

        assert [c.kind for c in conflicts] == [ConflictKind.BUFFER]

    def test_gap_equal_to_buffer_is_fine(self):
        assert detect_conflicts(_interval("2024-11-25 11:15", "2024-11-25 12:00"), EXISTING, 15) == []

    def test_conflicts_from_several_bookings(self):
        bookings = EXISTING + [
            _booking("b2", "2024-11-25 12:10", "2024-11-25 13:00"),
            _booking("b3", "2024-11-25 15:00", "2024-11-25 16:00"),
        ]

        conflicts = detect_conflicts(_interval("2024-11-25 10:30", "2024-11-25 12:00"), bookings, 15)

        assert [(c.kind, c.conflicting_booking_id) for c in conflicts] == [
            (ConflictKind.OVERLAP, "b1"),
            (ConflictKind.BUFFER, "b2"),
        ]

    def test_only_confirmed_bookings_count(self):
        bookings = [
            _booking("p1", "2024-11-25 10:00", "2024-11-25 11:00", BookingStatus.PENDING),
            _booking("c1", "2024-11-25 10:00", "2024-11-25 11:00", BookingStatus.CANCELLED),
        ]

        assert detect_conflicts(_interval("2024-11-25 10:00", "2024-11-25 11:00"), bookings, 15) == []

    def test_message_uses_operating_timezone(self):
        conflicts = detect_conflicts(
            _interval("2024-11-25 10:00", "2024-11-25 11:00"), EXISTING, 15, timezone="Europe/Berlin"
        )

        assert conflicts[0].message == "Conflicts with existing booking from 11:00 to 12:00"


def test_has_any_overlap():
    assert has_any_overlap(_interval("2024-11-25 10:30", "2024-11-25 11:00"), EXISTING)
    assert not has_any_overlap(_interval("2024-11-25 11:00", "2024-11-25 11:30"), EXISTING)
    assert not has_any_overlap(_interval("2024-11-25 10:00", "2024-11-25 10:30"), [])
