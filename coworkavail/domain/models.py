"""
Domain models for intervals, rule sets, bookings and availability results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as Date
from datetime import datetime, time
from enum import Enum
from typing import List, Optional

import pendulum
from pendulum import DateTime

SLOT_MINUTES = 30


def as_instant(value: datetime) -> DateTime:
    """Convert an aware datetime into a pendulum DateTime without shifting it."""
    if value.tzinfo is None:
        raise ValueError(f"Datetime {value} must be timezone-aware")
    return pendulum.instance(value)


@dataclass(frozen=True)
class TimeInterval:
    """
    Represents an immutable half-open interval [start, end).

    Invariant: both ends are timezone-aware and start is before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError(f"Interval {self.start} - {self.end} must be timezone-aware")
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval overlaps with another. Touching ends do not overlap."""
        return self.start < other.end and self.end > other.start

    def gap_minutes(self, other: "TimeInterval") -> float | None:
        """
        Minutes between this interval and another on whichever side they meet.

        Returns None when the intervals overlap.
        """
        if self.overlaps(other):
            return None
        if self.end <= other.start:
            return (other.start - self.end).total_seconds() / 60
        return (self.start - other.end).total_seconds() / 60

    def in_timezone(self, tz: str) -> "TimeInterval":
        return TimeInterval(start=self.start.in_timezone(tz), end=self.end.in_timezone(tz))

    def format_display(self, tz: str = "UTC") -> str:
        """Format as ``DD.MM.YYYY HH:mm - HH:mm`` in the given zone."""
        local = self.in_timezone(tz)
        return f"{local.start.format('DD.MM.YYYY HH:mm')} - {local.end.format('HH:mm')}"

    def __str__(self) -> str:
        return f"{self.start.to_iso8601_string()} - {self.end.to_iso8601_string()}"


@dataclass(frozen=True)
class AdvanceBooking:
    """How far ahead a booking may be made."""
    min_hours: float = 1
    max_days: float = 30


@dataclass(frozen=True)
class DurationLimits:
    """Minimum and maximum booking length in minutes."""
    min_minutes: int = 60
    max_minutes: int = 480


@dataclass(frozen=True)
class PeakWindow:
    """Time-of-day window carrying a pricing multiplier hint."""
    start: time
    end: time
    multiplier: float = 1.5


@dataclass(frozen=True)
class RuleSet:
    """
    Immutable business rules for one space or location.

    All time-of-day values are interpreted in ``timezone``. A rule set is
    never changed in place; the availability service swaps it wholesale.
    """
    open_time: time = time(9, 0)
    close_time: time = time(18, 0)
    buffer_minutes: int = 15
    advance: AdvanceBooking = field(default_factory=AdvanceBooking)
    duration: DurationLimits = field(default_factory=DurationLimits)
    same_day_cutoff: time = time(12, 0)
    weekend_booking_allowed: bool = False
    peak_window: Optional[PeakWindow] = None
    timezone: str = "UTC"

    def __post_init__(self):
        if self.close_time <= self.open_time:
            raise ValueError(
                f"Closing time {self.close_time:%H:%M} must be after opening time {self.open_time:%H:%M}"
            )
        window = _minutes_of_day(self.close_time) - _minutes_of_day(self.open_time)
        if window % SLOT_MINUTES:
            raise ValueError(
                f"Operating window of {window} minutes is not a multiple of {SLOT_MINUTES} minutes"
            )
        if self.buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must not be negative, got {self.buffer_minutes}")
        if self.duration.min_minutes > self.duration.max_minutes:
            raise ValueError("Minimum duration must not exceed maximum duration")
        if self.peak_window is not None:
            if self.peak_window.end <= self.peak_window.start:
                raise ValueError("Peak window must end after it starts")
            if self.peak_window.multiplier <= 0:
                raise ValueError("Peak multiplier must be greater than zero")
        try:
            pendulum.timezone(self.timezone)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {self.timezone}") from exc

    @classmethod
    def default(cls, timezone: str = "UTC") -> "RuleSet":
        """Rule set used when a location has not configured its own rules."""
        return cls(
            peak_window=PeakWindow(start=time(12, 0), end=time(14, 0), multiplier=1.5),
            timezone=timezone,
        )

    def at_time_of_day(self, day: Date, tod: time) -> DateTime:
        return pendulum.datetime(day.year, day.month, day.day, tod.hour, tod.minute, tz=self.timezone)

    def day_open(self, day: Date) -> DateTime:
        return self.at_time_of_day(day, self.open_time)

    def day_close(self, day: Date) -> DateTime:
        return self.at_time_of_day(day, self.close_time)

    def operating_window(self, day: Date) -> TimeInterval:
        return TimeInterval(start=self.day_open(day), end=self.day_close(day))

    def local(self, instant: datetime) -> DateTime:
        """Express an instant in the operating time zone."""
        return as_instant(instant).in_timezone(self.timezone)

    def local_date(self, instant: datetime) -> Date:
        return self.local(instant).date()

    def is_peak(self, instant: datetime) -> bool:
        """Whether an instant falls in the half-open peak window of its day."""
        if self.peak_window is None:
            return False
        day = self.local_date(instant)
        peak_start = self.at_time_of_day(day, self.peak_window.start)
        peak_end = self.at_time_of_day(day, self.peak_window.end)
        return peak_start <= instant < peak_end

    def peak_multiplier(self, instant: datetime) -> float:
        if self.is_peak(instant):
            return self.peak_window.multiplier
        return 1.0


def _minutes_of_day(tod: time) -> int:
    return tod.hour * 60 + tod.minute


class BookingStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"
    NO_SHOW = "No Show"


@dataclass(frozen=True)
class Booking:
    """A reservation owned by the booking store. Read-only here."""
    id: str
    space_id: str
    interval: TimeInterval
    status: BookingStatus = BookingStatus.CONFIRMED

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED


class ConflictKind(str, Enum):
    OVERLAP = "overlap"
    BUFFER = "buffer"
    RULE = "rule"


class RuleCode(str, Enum):
    OPERATING_HOURS = "OPERATING_HOURS"
    WEEKEND = "WEEKEND"
    ADVANCE_MINIMUM = "ADVANCE_MINIMUM"
    ADVANCE_MAXIMUM = "ADVANCE_MAXIMUM"
    SAME_DAY_CUTOFF = "SAME_DAY_CUTOFF"
    DURATION_TOO_SHORT = "DURATION_TOO_SHORT"
    DURATION_TOO_LONG = "DURATION_TOO_LONG"


@dataclass(frozen=True)
class ConflictEntry:
    """
    One reason a candidate interval cannot be booked.

    Overlap and buffer entries reference the booking they collide with;
    rule entries carry the rule they broke. Use the constructors below
    rather than building entries by hand.
    """
    kind: ConflictKind
    message: str
    conflicting_booking_id: Optional[str] = None
    rule: Optional[RuleCode] = None
    suggested_action: Optional[str] = None

    @classmethod
    def overlap(cls, booking_id: str, message: str) -> "ConflictEntry":
        return cls(
            kind=ConflictKind.OVERLAP,
            message=message,
            conflicting_booking_id=booking_id,
            suggested_action="Choose a different time slot",
        )

    @classmethod
    def buffer(cls, booking_id: str, message: str, buffer_minutes: int) -> "ConflictEntry":
        return cls(
            kind=ConflictKind.BUFFER,
            message=message,
            conflicting_booking_id=booking_id,
            suggested_action=f"Leave {buffer_minutes} minutes between bookings",
        )

    @classmethod
    def rule_violation(cls, rule: RuleCode, message: str, suggested_action: str | None = None) -> "ConflictEntry":
        return cls(kind=ConflictKind.RULE, message=message, rule=rule, suggested_action=suggested_action)


class ErrorCode(str, Enum):
    MISSING_SPACE_ID = "MISSING_SPACE_ID"
    MISSING_TIME = "MISSING_TIME"
    INVALID_TIME = "INVALID_TIME"
    TIMEZONE_REQUIRED = "TIMEZONE_REQUIRED"
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    AVAILABILITY_CHECK_FAILED = "AVAILABILITY_CHECK_FAILED"


@dataclass(frozen=True)
class ValidationError:
    """A problem with the request itself or with fetching data for it."""
    field: str
    message: str
    code: ErrorCode


@dataclass
class AvailabilityResult:
    """Outcome of an availability check."""
    conflicts: List[ConflictEntry] = field(default_factory=list)
    suggestions: List[TimeInterval] = field(default_factory=list)
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.conflicts and not self.errors

    @property
    def has_conflict(self) -> bool:
        return not self.ok


@dataclass(frozen=True)
class Slot:
    """A fixed-width segment of a day's grid."""
    interval: TimeInterval
    available: bool
    reason: Optional[str] = None
    is_peak: bool = False

    @property
    def start(self) -> DateTime:
        return self.interval.start

    @property
    def end(self) -> DateTime:
        return self.interval.end


@dataclass
class DayAvailability:
    """
    Slot grid for one space and day.

    ``error`` is set when bookings could not be fetched; ``slots`` is then
    empty.
    """
    space_id: str
    date: Optional[Date]
    slots: List[Slot] = field(default_factory=list)
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def available_slots(self) -> List[Slot]:
        return [slot for slot in self.slots if slot.available]
