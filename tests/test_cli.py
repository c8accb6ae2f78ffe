"""
Tests for the command line interface.
"""

import pendulum
from typer.testing import CliRunner

from slotengine.cli.app import app
from slotengine.domain.clock import SystemClock

runner = CliRunner()

CONFIG_YAML = """
schedules:
  - id: alice-work
    timezone: Europe/Berlin
    owner: alice@example.com
    rules:
      - {day: 1, start: "09:00", end: "12:00"}
      - {day: 3, start: "09:00", end: "12:00"}
    overrides:
      - {date: 2025-01-15, available: false}
event_types:
  - slug: intro-call
    schedule: alice-work
    duration_minutes: 60
    min_notice_minutes: 0
calendars:
  - provider: mock
    calendar_id: alice@example.com
"""


def _config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return str(path)


def test_slots_with_mock_data(tmp_path, monkeypatch):
    """Monday 2025-01-13 is busy 10:00-11:30 in the bundled mock data."""
    monkeypatch.setattr(SystemClock, "now", lambda self: pendulum.datetime(2025, 1, 1, tz="UTC"))

    result = runner.invoke(
        app,
        ["slots", "intro-call", "--config", _config(tmp_path), "--start", "2025-01-13", "--end", "2025-01-15", "--mock"],
    )

    assert result.exit_code == 0, result.output
    assert "1 buchbare(r) Termin(e) gefunden" in result.output
    assert "09:00 – 10:00" in result.output


def test_slots_unknown_event_type(tmp_path):
    result = runner.invoke(app, ["slots", "demo", "--config", _config(tmp_path)])

    assert result.exit_code == 1
    assert "Unknown event type" in result.output


def test_slots_bad_date(tmp_path):
    result = runner.invoke(app, ["slots", "intro-call", "--config", _config(tmp_path), "--start", "13.01.2025"])

    assert result.exit_code == 1


def test_windows(tmp_path):
    result = runner.invoke(app, ["windows", "alice-work", "2025-01-13", "--config", _config(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "09:00" in result.output
    assert "08:00 - 11:00" in result.output


def test_windows_override_day(tmp_path):
    result = runner.invoke(app, ["windows", "alice-work", "2025-01-15", "--config", _config(tmp_path)])

    assert result.exit_code == 0
    assert "Keine Verfügbarkeit" in result.output


def test_list_schedules(tmp_path):
    result = runner.invoke(app, ["list-schedules", "--config", _config(tmp_path)])

    assert result.exit_code == 0
    assert "alice-work" in result.output


def test_missing_config(tmp_path):
    result = runner.invoke(app, ["list-schedules", "--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output
