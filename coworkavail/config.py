"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import ConfigError
from .domain.models import AdvanceBooking, DurationLimits, PeakWindow, RuleSet


def parse_time_of_day(value: str) -> time:
    """Parse ``HH:MM`` into a time object."""
    try:
        hour, minute = (int(part) for part in str(value).split(":"))
        return time(hour=hour, minute=minute)
    except ValueError as exc:
        raise ValueError(f"Expected a time in HH:MM format, got {value!r}") from exc


class OperatingHoursConfig(BaseModel):
    """Daily opening window."""
    start: str = "09:00"
    end: str = "18:00"

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v: str) -> str:
        parse_time_of_day(v)
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "OperatingHoursConfig":
        """Ensure the configured window opens before it closes."""
        if parse_time_of_day(self.end) <= parse_time_of_day(self.start):
            raise ValueError("operating_hours.end must be later than operating_hours.start")
        return self


class AdvanceBookingConfig(BaseModel):
    minimum_hours: float = 1
    maximum_days: float = 30

    @field_validator("minimum_hours", "maximum_days")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("advance booking limits must not be negative")
        return v


class DurationLimitsConfig(BaseModel):
    minimum_minutes: int = 60
    maximum_minutes: int = 480

    @model_validator(mode="after")
    def validate_bounds(self) -> "DurationLimitsConfig":
        if self.minimum_minutes <= 0:
            raise ValueError("duration_limits.minimum_minutes must be greater than zero")
        if self.maximum_minutes < self.minimum_minutes:
            raise ValueError("duration_limits.maximum_minutes must not be below the minimum")
        return self


class PeakHoursConfig(BaseModel):
    start: str
    end: str
    multiplier: float = 1.5

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v: str) -> str:
        parse_time_of_day(v)
        return v

    @field_validator("multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("peak_hours.multiplier must be greater than zero")
        return v


class RulesConfig(BaseModel):
    """Business rules as written in the config file."""
    operating_hours: OperatingHoursConfig = Field(default_factory=OperatingHoursConfig)
    buffer_minutes: int = 15
    advance_booking: AdvanceBookingConfig = Field(default_factory=AdvanceBookingConfig)
    duration_limits: DurationLimitsConfig = Field(default_factory=DurationLimitsConfig)
    same_day_cutoff: str = "12:00"
    weekend_booking: bool = False
    peak_hours: Optional[PeakHoursConfig] = None

    @field_validator("buffer_minutes")
    @classmethod
    def validate_buffer(cls, v: int) -> int:
        if v < 0:
            raise ValueError("buffer_minutes must not be negative")
        return v

    @field_validator("same_day_cutoff")
    @classmethod
    def validate_cutoff(cls, v: str) -> str:
        parse_time_of_day(v)
        return v

    def to_rule_set(self, timezone: str) -> RuleSet:
        """
        Build the immutable domain rule set.

        Raises:
            ConfigError: If the rules are inconsistent (e.g. the operating
                window is not a whole number of 30-minute slots)
        """
        peak = None
        if self.peak_hours is not None:
            peak = PeakWindow(
                start=parse_time_of_day(self.peak_hours.start),
                end=parse_time_of_day(self.peak_hours.end),
                multiplier=self.peak_hours.multiplier,
            )

        try:
            return RuleSet(
                open_time=parse_time_of_day(self.operating_hours.start),
                close_time=parse_time_of_day(self.operating_hours.end),
                buffer_minutes=self.buffer_minutes,
                advance=AdvanceBooking(
                    min_hours=self.advance_booking.minimum_hours,
                    max_days=self.advance_booking.maximum_days,
                ),
                duration=DurationLimits(
                    min_minutes=self.duration_limits.minimum_minutes,
                    max_minutes=self.duration_limits.maximum_minutes,
                ),
                same_day_cutoff=parse_time_of_day(self.same_day_cutoff),
                weekend_booking_allowed=self.weekend_booking,
                peak_window=peak,
                timezone=timezone,
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid rules: {exc}") from exc


class SpaceConfig(BaseModel):
    """A bookable space shown by the CLI."""
    id: str
    name: str = ""

    def display_name(self) -> str:
        return self.name or self.id


class CacheConfig(BaseModel):
    ttl_seconds: float = 120
    max_entries: int = 100

    @field_validator("ttl_seconds", "max_entries")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("cache settings must be greater than zero")
        return v


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "UTC"
    rules: RulesConfig = Field(default_factory=RulesConfig)
    spaces: List[SpaceConfig] = Field(default_factory=list)
    bookings_file: Optional[Path] = None
    booking_api_url: Optional[str] = None
    booking_api_token: Optional[str] = None
    source_timeout: Optional[float] = None
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            pendulum.timezone(v)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {v}") from exc
        return v

    @field_validator("spaces")
    @classmethod
    def validate_spaces(cls, value: List[SpaceConfig]) -> List[SpaceConfig]:
        """Ensure space ids are unique."""
        seen: set[str] = set()
        for space in value:
            if space.id in seen:
                raise ValueError(f"Duplicate space id detected: {space.id}")
            seen.add(space.id)
        return value

    def to_rule_set(self) -> RuleSet:
        return self.rules.to_rule_set(self.timezone)

    def find_space(self, space_id: str) -> SpaceConfig | None:
        for space in self.spaces:
            if space.id == space_id:
                return space
        return None

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative ``bookings_file`` paths are resolved against the config
        file's directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.bookings_file is not None and not config.bookings_file.is_absolute():
            config.bookings_file = config_path.parent / config.bookings_file
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
