"""
Booking source backed by the coworking application's bookings REST API.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests
from pendulum import DateTime

from ..domain.exceptions import SourceUnavailableError
from ..domain.models import Booking, BookingStatus
from .records import booking_from_record, select_bookings

logger = logging.getLogger(__name__)


class HttpBookingSource:
    """
    Client for the ``GET /bookings`` endpoint.

    The API filters by calendar date only, so results are narrowed to the
    requested window locally. ``requests`` is blocking; calls run in a
    worker thread to keep the event loop free during bulk fan-out.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10,
        timezone: str = "UTC",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. ``https://example.com/api``
            token: Optional bearer token
            timeout: Per-request timeout in seconds
            timezone: Zone used for date filters and offset-less timestamps
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.timezone = timezone
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    async def list_confirmed_bookings(
        self,
        space_id: str,
        window_start: DateTime,
        window_end: DateTime,
        exclude_id: Optional[str] = None,
    ) -> List[Booking]:
        return await asyncio.to_thread(
            self.fetch_bookings, space_id, window_start, window_end, exclude_id
        )

    def fetch_bookings(
        self,
        space_id: str,
        window_start: DateTime,
        window_end: DateTime,
        exclude_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Fetch confirmed bookings of a space for a window.

        Raises:
            SourceUnavailableError: If the API call fails or returns an
                unexpected payload
        """
        params = {
            "spaceId": space_id,
            "startDate": window_start.in_timezone(self.timezone).format("YYYY-MM-DD"),
            "endDate": window_end.in_timezone(self.timezone).format("YYYY-MM-DD"),
            "status": BookingStatus.CONFIRMED.value,
        }

        try:
            response = self.session.get(
                f"{self.base_url}/bookings",
                headers=self.headers,
                params=params,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            raise SourceUnavailableError(f"Failed to fetch bookings for space {space_id}: {exc}") from exc
        except ValueError as exc:
            raise SourceUnavailableError(f"Bookings API returned invalid JSON: {exc}") from exc

        bookings = self._parse_bookings_response(data)
        return select_bookings(bookings, space_id, window_start, window_end, exclude_id)

    def _parse_bookings_response(self, response_data: Dict[str, Any]) -> List[Booking]:
        """
        Parse the bookings API response into domain bookings.

        Response format:
        {
            "success": true,
            "data": {
                "bookings": [
                    {
                        "_id": "...",
                        "spaceId": "...",
                        "startTime": "2024-11-25T09:00:00.000Z",
                        "endTime": "2024-11-25T10:00:00.000Z",
                        "status": "Confirmed"
                    }
                ]
            }
        }
        """
        try:
            records = (response_data.get("data") or {}).get("bookings") or []
        except AttributeError as exc:
            raise SourceUnavailableError("Bookings API returned an unexpected payload") from exc

        bookings: List[Booking] = []
        for record in records:
            if isinstance(record.get("spaceId"), dict):
                # Populated references carry the id inside the nested object
                record = {**record, "spaceId": record["spaceId"].get("_id")}
            try:
                bookings.append(booking_from_record(record, self.timezone))
            except (KeyError, ValueError) as exc:
                logger.warning("Could not parse booking record: %s", exc)
                continue

        return bookings
