"""
Adapters layer - Booking sources (REST API, data files).
"""

from .file_booking_source import FileBookingSource
from .http_booking_source import HttpBookingSource

__all__ = ["FileBookingSource", "HttpBookingSource"]
