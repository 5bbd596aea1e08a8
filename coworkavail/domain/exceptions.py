"""
Domain-specific exception hierarchy for the availability engine.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class SourceUnavailableError(AvailabilityError):
    """Raised when bookings cannot be fetched from the booking source."""


class ConfigError(AvailabilityError):
    """Raised when the configuration file cannot be turned into a rule set."""
