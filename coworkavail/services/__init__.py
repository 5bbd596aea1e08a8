"""
Service layer helpers that orchestrate booking sources and domain logic.
"""

from .availability import AvailabilityService, BookingQuerySource
from .result_cache import CacheEntry, ResultCache

__all__ = ["AvailabilityService", "BookingQuerySource", "CacheEntry", "ResultCache"]
