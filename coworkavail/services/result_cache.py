"""
Bounded, short-lived cache for real-time availability results.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Tuple

from pendulum import DateTime

from ..domain.models import AvailabilityResult

CacheKey = Tuple[str, str, str]


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    result: AvailabilityResult
    expires_at: DateTime


class ResultCache:
    """
    TTL cache with insertion-order eviction.

    Expired entries are dropped lazily when looked up. When the cache grows
    past ``max_entries`` the oldest inserted entry goes first, regardless of
    how recently it was read. All access is serialized by one lock so the
    size bound holds under concurrent writers.
    """

    def __init__(self, ttl_seconds: float = 120, max_entries: int = 100):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be greater than zero")
        if max_entries <= 0:
            raise ValueError("max_entries must be greater than zero")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: CacheKey, now: DateTime) -> Optional[AvailabilityResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.result

    def put(self, key: CacheKey, result: AvailabilityResult, now: DateTime) -> CacheEntry:
        entry = CacheEntry(key=key, result=result, expires_at=now + timedelta(seconds=self.ttl_seconds))
        with self._lock:
            # Re-inserting moves the key to the back of the eviction order
            self._entries.pop(key, None)
            self._entries[key] = entry
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
