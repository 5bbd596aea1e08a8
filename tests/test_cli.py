"""
Tests for the command line interface.
"""

import pytest
from typer.testing import CliRunner

from coworkavail.cli.app import app

runner = CliRunner()

CONFIG_YAML = """
timezone: UTC
rules:
  operating_hours:
    start: "09:00"
    end: "18:00"
  buffer_minutes: 15
spaces:
  - id: room-a
    name: Meeting Room A
  - id: desk-1
bookings_file: bookings.yaml
"""

BOOKINGS_YAML = """
- id: b-1
  spaceId: room-a
  startTime: "2024-11-25 10:00"
  endTime: "2024-11-25 11:00"
- id: b-2
  spaceId: room-a
  startTime: "2024-11-25 14:00"
  endTime: "2024-11-25 16:30"
"""


@pytest.fixture
def config_file(tmp_path):
    (tmp_path / "bookings.yaml").write_text(BOOKINGS_YAML, encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


def test_rules(config_file):
    result = runner.invoke(app, ["rules", "--config", str(config_file)])

    assert result.exit_code == 0
    assert "Business rules" in result.output
    assert "09:00 - 18:00" in result.output
    assert "not allowed" in result.output


def test_day_grid(config_file):
    result = runner.invoke(app, ["day", "room-a", "--date", "2024-11-25", "--config", str(config_file)])

    assert result.exit_code == 0
    assert "11 of 18 slots free" in result.output


def test_day_invalid_date(config_file):
    result = runner.invoke(app, ["day", "room-a", "--date", "25/11/2024", "--config", str(config_file)])

    assert result.exit_code == 1


def test_check_conflict_exits_with_code_2(config_file):
    result = runner.invoke(
        app,
        ["check", "room-a", "2024-11-25 10:30", "2024-11-25 11:30", "--skip-rules", "--config", str(config_file)],
    )

    assert result.exit_code == 2
    assert "Not available" in result.output
    assert "overlap" in result.output


def test_check_free_interval(config_file):
    result = runner.invoke(
        app,
        ["check", "room-a", "2024-11-25 12:00", "2024-11-25 13:00", "--skip-rules", "--config", str(config_file)],
    )

    assert result.exit_code == 0
    assert "Available" in result.output


def test_check_exclude_own_booking(config_file):
    result = runner.invoke(
        app,
        [
            "check", "room-a", "2024-11-25 10:00", "2024-11-25 11:00",
            "--skip-rules", "--exclude", "b-1", "--config", str(config_file),
        ],
    )

    assert result.exit_code == 0


def test_bulk_uses_configured_spaces(config_file):
    result = runner.invoke(app, ["bulk", "--date", "2024-11-25", "--config", str(config_file)])

    assert result.exit_code == 0
    assert "Meeting Room A" in result.output
    assert "desk-1" in result.output


def test_missing_config(tmp_path):
    result = runner.invoke(app, ["rules", "--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output
