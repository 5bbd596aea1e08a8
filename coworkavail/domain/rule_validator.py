"""
Business rule validation for candidate booking intervals.

Every check runs independently so a caller sees all violations at once.
Nothing here performs I/O; ``now`` is always passed in.
"""

from typing import List

from pendulum import DateTime

from .models import ConflictEntry, RuleCode, RuleSet, TimeInterval

SHORT_NOTICE_MINUTES = 120
FAR_ADVANCE_DAYS = 30


def validate_rules(interval: TimeInterval, rules: RuleSet, now: DateTime) -> List[ConflictEntry]:
    """
    Check an interval against a rule set.

    Args:
        interval: Candidate booking interval
        rules: Active rule set
        now: Current instant

    Returns:
        List of rule violations; empty if the interval is legal
    """
    violations: List[ConflictEntry] = []

    start_day = rules.local_date(interval.start)
    minutes_until = (interval.start - now).total_seconds() / 60

    if interval.start < rules.day_open(start_day) or interval.end > rules.day_close(start_day):
        violations.append(ConflictEntry.rule_violation(
            RuleCode.OPERATING_HOURS,
            f"Bookings are only allowed between {rules.open_time:%H:%M} and {rules.close_time:%H:%M}",
            "Choose a time within operating hours",
        ))

    if not rules.weekend_booking_allowed and start_day.weekday() >= 5:
        violations.append(ConflictEntry.rule_violation(
            RuleCode.WEEKEND,
            "Weekend bookings are not allowed",
            "Choose a weekday",
        ))

    if minutes_until < rules.advance.min_hours * 60:
        violations.append(ConflictEntry.rule_violation(
            RuleCode.ADVANCE_MINIMUM,
            f"Bookings must be made at least {_number(rules.advance.min_hours)} hours in advance",
            "Choose a later time",
        ))

    if minutes_until > rules.advance.max_days * 24 * 60:
        violations.append(ConflictEntry.rule_violation(
            RuleCode.ADVANCE_MAXIMUM,
            f"Bookings cannot be made more than {_number(rules.advance.max_days)} days in advance",
            "Choose an earlier date",
        ))

    # Same-day cutoff applies no matter how late in the day the booking starts
    if start_day == rules.local_date(now):
        cutoff = rules.at_time_of_day(start_day, rules.same_day_cutoff)
        if now > cutoff:
            violations.append(ConflictEntry.rule_violation(
                RuleCode.SAME_DAY_CUTOFF,
                f"Same-day bookings must be made before {rules.same_day_cutoff:%H:%M}",
                "Choose tomorrow or later",
            ))

    duration = interval.duration_minutes()
    if duration < rules.duration.min_minutes:
        violations.append(ConflictEntry.rule_violation(
            RuleCode.DURATION_TOO_SHORT,
            f"Minimum booking duration is {rules.duration.min_minutes} minutes",
            "Extend the booking",
        ))
    if duration > rules.duration.max_minutes:
        violations.append(ConflictEntry.rule_violation(
            RuleCode.DURATION_TOO_LONG,
            f"Maximum booking duration is {rules.duration.max_minutes} minutes",
            "Shorten the booking",
        ))

    return violations


def collect_warnings(interval: TimeInterval, rules: RuleSet, now: DateTime) -> List[str]:
    """Informational notes about a booking that do not make it illegal."""
    warnings: List[str] = []
    minutes_until = (interval.start - now).total_seconds() / 60

    if 0 <= minutes_until < SHORT_NOTICE_MINUTES:
        warnings.append("This is a short-notice booking. Please ensure all arrangements are in place.")

    if minutes_until > FAR_ADVANCE_DAYS * 24 * 60:
        warnings.append("This booking is far in advance. Please confirm availability closer to the date.")

    if rules.weekend_booking_allowed and rules.local_date(interval.start).weekday() >= 5:
        warnings.append("This is a weekend booking. Please verify weekend rates and availability.")

    if rules.is_peak(interval.start):
        warnings.append(
            f"This booking starts during peak hours (x{rules.peak_multiplier(interval.start):g} pricing)."
        )

    return warnings


def _number(value: float) -> str:
    """Render 2.0 as ``2`` and 1.5 as ``1.5`` in messages."""
    return f"{value:g}"
