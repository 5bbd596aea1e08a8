"""
Alternative slot suggestions for a rejected booking request.
"""

from typing import Iterable, List

from .models import SLOT_MINUTES, Booking, TimeInterval
from .slot_generator import SlotGenerator

DEFAULT_MAX_SUGGESTIONS = 5


class SuggestionEngine:
    """
    Looks for free runs in the rejected interval's day that fit the
    requested duration.

    Suggestions are based on grid occupancy only. They are not checked
    against weekend, advance, cutoff or buffer rules, so a suggestion can
    still be rejected when it is submitted.
    """

    def __init__(self, slot_generator: SlotGenerator):
        self._slot_generator = slot_generator

    def suggest(
        self,
        rejected: TimeInterval,
        bookings: Iterable[Booking],
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
    ) -> List[TimeInterval]:
        """
        Scan the day grid left to right for runs of available slots.

        Each suggestion starts at the first slot of a run and lasts exactly
        the requested duration. Scanning resumes at the first slot after the
        suggestion, so suggestions never overlap each other. Restarting at
        the second slot of the run instead would turn a free 14:00-15:30
        into two overlapping offers (14:00-15:00 and 14:30-15:30).

        Args:
            rejected: Interval that could not be booked
            bookings: Existing bookings of the space
            max_suggestions: Upper bound on returned suggestions

        Returns:
            Suggested intervals in chronological order
        """
        rules = self._slot_generator.rules
        duration = rejected.duration_minutes()
        grid = self._slot_generator.generate_day(rules.local_date(rejected.start), bookings)

        suggestions: List[TimeInterval] = []
        index = 0

        while index < len(grid) and len(suggestions) < max_suggestions:
            if not grid[index].available:
                index += 1
                continue

            run_start = grid[index].start
            accumulated = 0
            cursor = index

            while cursor < len(grid) and grid[cursor].available and accumulated < duration:
                accumulated += SLOT_MINUTES
                cursor += 1

            if accumulated < duration:
                # Run too short; nothing inside it can fit either
                index = cursor
                continue

            suggestion = TimeInterval(start=run_start, end=run_start.add(minutes=duration))
            suggestions.append(suggestion)

            while index < len(grid) and grid[index].start < suggestion.end:
                index += 1

        return suggestions
