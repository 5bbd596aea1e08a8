"""
Application service answering availability questions for coworking spaces.

The service fetches bookings through a ``BookingQuerySource`` and delegates
every decision to the pure domain functions. Booking storage is an external
collaborator, so any store (a REST API, a file, a stub in tests) can be
plugged in by implementing the protocol below.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import date as Date
from datetime import datetime, time
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple, Union

import pendulum
from pendulum import DateTime

from ..domain.conflict_detector import detect_conflicts
from ..domain.exceptions import SourceUnavailableError
from ..domain.models import (
    AvailabilityResult,
    Booking,
    DayAvailability,
    ErrorCode,
    RuleSet,
    TimeInterval,
    ValidationError,
)
from ..domain.rule_validator import collect_warnings, validate_rules
from ..domain.slot_generator import SlotGenerator
from ..domain.suggestion_engine import DEFAULT_MAX_SUGGESTIONS, SuggestionEngine
from .result_cache import CacheKey, ResultCache

logger = logging.getLogger(__name__)

InstantInput = Union[datetime, str, None]
DateInput = Union[Date, str]

CHECK_FAILED_MESSAGE = "Failed to check availability. Please try again."


class BookingQuerySource(Protocol):
    """Protocol describing the booking store behaviour needed by the service."""

    async def list_confirmed_bookings(
        self,
        space_id: str,
        window_start: DateTime,
        window_end: DateTime,
        exclude_id: Optional[str] = None,
    ) -> List[Booking]:
        """Return confirmed bookings of a space that touch the window."""


class AvailabilityService:
    """
    Orchestrates booking retrieval, rule validation, conflict detection and
    suggestions.

    Each instance owns its rule set and its real-time cache, so instances
    with different rules can live side by side. The rule set is an
    immutable snapshot: every operation reads it once at the start, and
    ``update_rule_set`` swaps it and empties the cache under one lock.
    """

    def __init__(
        self,
        booking_source: BookingQuerySource,
        rules: RuleSet,
        *,
        clock: Optional[Callable[[], DateTime]] = None,
        cache_ttl_seconds: float = 120,
        cache_max_entries: int = 100,
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
        source_timeout: Optional[float] = None,
    ) -> None:
        self._source = booking_source
        self._rules = rules
        self._clock = clock or (lambda: pendulum.now("UTC"))
        self._cache = ResultCache(ttl_seconds=cache_ttl_seconds, max_entries=cache_max_entries)
        self._max_suggestions = max_suggestions
        self._source_timeout = source_timeout
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def rules(self) -> RuleSet:
        with self._lock:
            return self._rules

    @property
    def cache(self) -> ResultCache:
        return self._cache

    def update_rule_set(self, new_rules: RuleSet) -> None:
        """Replace the active rule set and drop every cached result."""
        if not isinstance(new_rules, RuleSet):
            raise TypeError(f"Expected a RuleSet, got {type(new_rules).__name__}")
        with self._lock:
            self._rules = new_rules
            self._generation += 1
            self._cache.clear()
        logger.info("Rule set replaced; availability cache cleared")

    async def check_availability(
        self,
        space_id: str,
        start: InstantInput,
        end: InstantInput,
        *,
        skip_rules: bool = False,
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Check whether a space can be booked for an interval.

        Args:
            space_id: Space to book
            start: Aware datetime or ISO string (strings without an offset
                are read in the rule set's time zone)
            end: Same as ``start``
            skip_rules: Only look for booking conflicts
            exclude_booking_id: Booking being edited, ignored as a conflict

        Returns:
            Fully populated AvailabilityResult. Never raises for bad input
            or an unreachable booking source.
        """
        rules = self.rules
        interval, errors = self._validate_request(space_id, start, end, rules)
        if errors:
            logger.debug("Rejected availability request for %r: %s", space_id, errors)
            return AvailabilityResult(errors=errors)

        return await self._check(
            space_id,
            interval,
            rules,
            skip_rules=skip_rules,
            exclude_booking_id=exclude_booking_id,
        )

    async def get_day_availability(self, space_id: str, day: DateInput) -> DayAvailability:
        """Build the slot grid of one space for one day."""
        return await self._day_availability(space_id, day, self.rules)

    async def get_bulk_availability(
        self,
        space_ids: Sequence[str],
        day: DateInput,
    ) -> Dict[str, DayAvailability]:
        """
        Build slot grids for several spaces concurrently.

        A space whose bookings cannot be fetched gets an empty grid with an
        error marker; the other spaces are unaffected.
        """
        rules = self.rules
        try:
            target: Optional[Date] = _coerce_date(day, rules)
        except ValueError:
            target = None

        unique_ids: List[str] = []
        for space_id in space_ids:
            if space_id not in unique_ids:
                unique_ids.append(space_id)

        outcomes = await asyncio.gather(
            *(self._day_availability(space_id, day if target is None else target, rules)
              for space_id in unique_ids),
            return_exceptions=True,
        )

        grids: Dict[str, DayAvailability] = {}
        for space_id, outcome in zip(unique_ids, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Day availability for space %s failed: %r", space_id, outcome)
                outcome = DayAvailability(
                    space_id=space_id,
                    date=target,
                    error=_check_failed("slots"),
                )
            grids[space_id] = outcome

        return grids

    async def check_real_time_availability(
        self,
        space_id: str,
        start: InstantInput,
        end: InstantInput,
    ) -> bool:
        """
        Fast "is this still free" check for polling UIs.

        Business rules are skipped and results are cached for a short time.
        Failed checks are never cached and always report ``False``.
        """
        with self._lock:
            rules = self._rules
            generation = self._generation

        interval, errors = self._validate_request(space_id, start, end, rules)
        if errors:
            return False

        key = _cache_key(space_id, interval)
        cached = self._cache.get(key, self._clock())
        if cached is not None:
            logger.debug("Real-time cache hit for %s", key)
            return cached.ok

        logger.debug("Real-time cache miss for %s", key)
        result = await self._check(space_id, interval, rules, skip_rules=True)

        if not result.errors:
            self._store(key, result, generation)

        return result.ok

    async def _check(
        self,
        space_id: str,
        interval: TimeInterval,
        rules: RuleSet,
        *,
        skip_rules: bool,
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        result = AvailabilityResult()

        window_start = rules.local(interval.start).start_of("day")
        window_end = rules.local(interval.end).end_of("day")

        try:
            bookings = await self._fetch_bookings(space_id, window_start, window_end, exclude_booking_id)
        except SourceUnavailableError as exc:
            logger.warning("Availability check for space %s failed: %s", space_id, exc)
            result.errors.append(_check_failed("general"))
            return result

        if not skip_rules:
            now = self._clock()
            result.conflicts.extend(validate_rules(interval, rules, now))
            result.warnings.extend(collect_warnings(interval, rules, now))

        result.conflicts.extend(
            detect_conflicts(interval, bookings, rules.buffer_minutes, timezone=rules.timezone)
        )

        if not result.ok:
            engine = SuggestionEngine(SlotGenerator(rules))
            result.suggestions = engine.suggest(interval, bookings, self._max_suggestions)

        logger.debug(
            "Checked %s for space %s: %d conflict(s), %d suggestion(s)",
            interval, space_id, len(result.conflicts), len(result.suggestions),
        )
        return result

    async def _day_availability(self, space_id: str, day: DateInput, rules: RuleSet) -> DayAvailability:
        if not space_id:
            return DayAvailability(
                space_id=space_id,
                date=None,
                error=ValidationError("spaceId", "Space ID is required", ErrorCode.MISSING_SPACE_ID),
            )

        try:
            target = _coerce_date(day, rules)
        except ValueError as exc:
            return DayAvailability(
                space_id=space_id,
                date=None,
                error=ValidationError("date", str(exc), ErrorCode.INVALID_TIME),
            )

        day_start = rules.at_time_of_day(target, time(0, 0))
        try:
            bookings = await self._fetch_bookings(space_id, day_start, day_start.end_of("day"))
        except SourceUnavailableError as exc:
            logger.warning("Day availability for space %s on %s failed: %s", space_id, target, exc)
            return DayAvailability(space_id=space_id, date=target, error=_check_failed("slots"))

        slots = SlotGenerator(rules).generate_day(target, bookings)
        return DayAvailability(space_id=space_id, date=target, slots=slots)

    async def _fetch_bookings(
        self,
        space_id: str,
        window_start: DateTime,
        window_end: DateTime,
        exclude_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Fetch bookings, turning any source failure into SourceUnavailableError.

        A payload that is not a list of bookings counts as a failure too.
        """
        try:
            call = self._source.list_confirmed_bookings(
                space_id, window_start, window_end, exclude_id=exclude_id
            )
            if self._source_timeout is not None:
                bookings = await asyncio.wait_for(call, timeout=self._source_timeout)
            else:
                bookings = await call

            # The source may ignore exclude_id; filter here as well
            return [
                booking for booking in bookings
                if booking.is_confirmed and (exclude_id is None or booking.id != exclude_id)
            ]
        except SourceUnavailableError:
            raise
        except asyncio.TimeoutError as exc:
            raise SourceUnavailableError(
                f"Booking source timed out after {self._source_timeout}s for space {space_id}"
            ) from exc
        except Exception as exc:
            raise SourceUnavailableError(f"Unable to fetch bookings for space {space_id}: {exc}") from exc

    def _store(self, key: CacheKey, result: AvailabilityResult, generation: int) -> None:
        with self._lock:
            # A rule change while the check was running invalidates its result
            if generation != self._generation:
                logger.debug("Discarding real-time result computed under replaced rules")
                return
            self._cache.put(key, result, self._clock())

    @staticmethod
    def _validate_request(
        space_id: str,
        start: InstantInput,
        end: InstantInput,
        rules: RuleSet,
    ) -> Tuple[Optional[TimeInterval], List[ValidationError]]:
        errors: List[ValidationError] = []

        if not space_id:
            errors.append(ValidationError("spaceId", "Space ID is required", ErrorCode.MISSING_SPACE_ID))

        if start is None or start == "" or end is None or end == "":
            errors.append(ValidationError("time", "Both start and end times are required", ErrorCode.MISSING_TIME))
            return None, errors

        start_at, start_error = _parse_instant(start, "startTime", rules)
        end_at, end_error = _parse_instant(end, "endTime", rules)
        errors.extend(error for error in (start_error, end_error) if error is not None)

        if start_at is not None and end_at is not None and end_at <= start_at:
            errors.append(ValidationError("endTime", "End time must be after start time", ErrorCode.INVALID_TIME_RANGE))

        if errors:
            return None, errors

        return TimeInterval(start=start_at, end=end_at), errors


def _parse_instant(
    value: Union[datetime, str],
    field_name: str,
    rules: RuleSet,
) -> Tuple[Optional[DateTime], Optional[ValidationError]]:
    if isinstance(value, str):
        try:
            parsed = pendulum.parse(value, tz=rules.timezone)
        except ValueError:
            parsed = None
        if not isinstance(parsed, datetime):
            return None, ValidationError(field_name, f"Invalid date/time: {value!r}", ErrorCode.INVALID_TIME)
        value = parsed

    if not isinstance(value, datetime):
        return None, ValidationError(field_name, f"Invalid date/time: {value!r}", ErrorCode.INVALID_TIME)

    if value.tzinfo is None:
        return None, ValidationError(
            field_name,
            f"{field_name} must include a time zone",
            ErrorCode.TIMEZONE_REQUIRED,
        )

    return pendulum.instance(value).in_timezone("UTC"), None


def _coerce_date(day: DateInput, rules: RuleSet) -> Date:
    if isinstance(day, datetime):
        return rules.local_date(day)
    if isinstance(day, Date):
        return day
    if not isinstance(day, str):
        raise ValueError(f"Invalid date: {day!r}")
    parsed = pendulum.parse(day, exact=True)
    if isinstance(parsed, datetime):
        return rules.local_date(parsed) if parsed.tzinfo else parsed.date()
    if isinstance(parsed, Date):
        return parsed
    raise ValueError(f"Invalid date: {day!r}")


def _cache_key(space_id: str, interval: TimeInterval) -> CacheKey:
    return (space_id, interval.start.to_iso8601_string(), interval.end.to_iso8601_string())


def _check_failed(field_name: str) -> ValidationError:
    return ValidationError(field_name, CHECK_FAILED_MESSAGE, ErrorCode.AVAILABILITY_CHECK_FAILED)
