"""
Domain layer - Pure business logic without external dependencies.
"""

from .booking_policy import BookingChangeDecision, can_cancel_booking, can_modify_booking
from .conflict_detector import detect_conflicts, has_any_overlap
from .models import (
    AvailabilityResult,
    Booking,
    BookingStatus,
    ConflictEntry,
    ConflictKind,
    DayAvailability,
    RuleSet,
    Slot,
    TimeInterval,
    ValidationError,
)
from .rule_validator import collect_warnings, validate_rules
from .slot_generator import SlotGenerator
from .suggestion_engine import SuggestionEngine

__all__ = [
    "AvailabilityResult",
    "Booking",
    "BookingChangeDecision",
    "BookingStatus",
    "ConflictEntry",
    "ConflictKind",
    "DayAvailability",
    "RuleSet",
    "Slot",
    "SlotGenerator",
    "SuggestionEngine",
    "TimeInterval",
    "ValidationError",
    "can_cancel_booking",
    "can_modify_booking",
    "collect_warnings",
    "detect_conflicts",
    "has_any_overlap",
    "validate_rules",
]
