"""
Booking source backed by a local YAML or JSON data file.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pendulum import DateTime

from ..domain.models import Booking
from .records import booking_from_record, select_bookings

logger = logging.getLogger(__name__)


class FileBookingSource:
    """
    Serves bookings from a data file, for demos and offline use.

    The file holds either a list of booking records or a mapping with a
    ``bookings`` list. Records that cannot be parsed are skipped with a
    warning.
    """

    def __init__(self, path: Path, timezone: str = "UTC"):
        self.path = Path(path)
        self.timezone = timezone
        self.bookings: List[Booking] = self._load_bookings()

    def _load_bookings(self) -> List[Booking]:
        if not self.path.exists():
            raise FileNotFoundError(f"Bookings file not found: {self.path}")

        with open(self.path, "r", encoding="utf-8") as f:
            try:
                if self.path.suffix.lower() == ".json":
                    data: Any = json.load(f)
                else:
                    data = yaml.safe_load(f)
            except (json.JSONDecodeError, yaml.YAMLError) as exc:
                raise ValueError(f"Invalid bookings file {self.path}: {exc}") from exc

        if isinstance(data, dict):
            data = data.get("bookings", [])
        if not isinstance(data, list):
            raise ValueError(f"Bookings file {self.path} must contain a list of bookings.")

        bookings: List[Booking] = []
        for record in data:
            try:
                bookings.append(booking_from_record(record, self.timezone))
            except (KeyError, ValueError, TypeError, AttributeError) as exc:
                logger.warning("Skipping invalid booking record %r: %s", record, exc)

        return bookings

    async def list_confirmed_bookings(
        self,
        space_id: str,
        window_start: DateTime,
        window_end: DateTime,
        exclude_id: Optional[str] = None,
    ) -> List[Booking]:
        return select_bookings(self.bookings, space_id, window_start, window_end, exclude_id)

    def space_ids(self) -> List[str]:
        """Space ids that appear in the file, in first-seen order."""
        seen: List[str] = []
        for booking in self.bookings:
            if booking.space_id not in seen:
                seen.append(booking.space_id)
        return seen
