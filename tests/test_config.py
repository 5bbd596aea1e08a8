"""
Tests for YAML configuration loading.
"""

from datetime import time
from pathlib import Path

import pytest

from coworkavail.config import AppConfig, RulesConfig, parse_time_of_day
from coworkavail.domain.exceptions import ConfigError

CONFIG_YAML = """
timezone: Europe/Berlin
rules:
  operating_hours:
    start: "08:30"
    end: "20:00"
  buffer_minutes: 10
  advance_booking:
    minimum_hours: 2
    maximum_days: 60
  duration_limits:
    minimum_minutes: 30
    maximum_minutes: 240
  same_day_cutoff: "11:00"
  weekend_booking: true
  peak_hours:
    start: "12:00"
    end: "14:00"
    multiplier: 2
spaces:
  - id: room-a
    name: Meeting Room A
  - id: desk-1
bookings_file: bookings.yaml
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_and_build_rule_set(tmp_path):
    config = AppConfig.load_from_yaml(_write(tmp_path, CONFIG_YAML))
    rules = config.to_rule_set()

    assert rules.timezone == "Europe/Berlin"
    assert rules.open_time == time(8, 30)
    assert rules.close_time == time(20, 0)
    assert rules.buffer_minutes == 10
    assert rules.advance.min_hours == 2
    assert rules.advance.max_days == 60
    assert rules.duration.min_minutes == 30
    assert rules.duration.max_minutes == 240
    assert rules.same_day_cutoff == time(11, 0)
    assert rules.weekend_booking_allowed
    assert rules.peak_window.multiplier == 2


def test_relative_bookings_file_resolved_against_config(tmp_path):
    config = AppConfig.load_from_yaml(_write(tmp_path, CONFIG_YAML))

    assert config.bookings_file == tmp_path / "bookings.yaml"


def test_spaces(tmp_path):
    config = AppConfig.load_from_yaml(_write(tmp_path, CONFIG_YAML))

    assert config.find_space("room-a").display_name() == "Meeting Room A"
    assert config.find_space("desk-1").display_name() == "desk-1"
    assert config.find_space("nope") is None


def test_empty_file_uses_defaults(tmp_path):
    config = AppConfig.load_from_yaml(_write(tmp_path, ""))
    rules = config.to_rule_set()

    assert rules.open_time == time(9, 0)
    assert rules.buffer_minutes == 15
    assert not rules.weekend_booking_allowed


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        AppConfig.load_from_yaml(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path):
    with pytest.raises(ValueError, match="Invalid YAML"):
        AppConfig.load_from_yaml(_write(tmp_path, "rules: [unclosed"))


def test_root_must_be_mapping(tmp_path):
    with pytest.raises(ValueError, match="mapping"):
        AppConfig.load_from_yaml(_write(tmp_path, "- a\n- b\n"))


def test_invalid_time_rejected():
    with pytest.raises(ValueError):
        RulesConfig(same_day_cutoff="noon")


def test_closing_before_opening_rejected():
    with pytest.raises(ValueError):
        RulesConfig(operating_hours={"start": "18:00", "end": "09:00"})


def test_unknown_timezone_rejected():
    with pytest.raises(ValueError):
        AppConfig(timezone="Nowhere/Special")


def test_duplicate_space_ids_rejected():
    with pytest.raises(ValueError, match="Duplicate space id"):
        AppConfig(spaces=[{"id": "room-a"}, {"id": "room-a"}])


def test_window_not_fitting_slots_is_config_error():
    rules = RulesConfig(operating_hours={"start": "09:00", "end": "17:45"})

    with pytest.raises(ConfigError, match="not a multiple of 30"):
        rules.to_rule_set("UTC")


def test_parse_time_of_day():
    assert parse_time_of_day("07:05") == time(7, 5)
    with pytest.raises(ValueError):
        parse_time_of_day("25:00")
