"""
Tests for YAML configuration loading.
"""

from datetime import date
from pathlib import Path

import pytest
from pydantic import ValidationError

from slotengine.config import AppConfig, CalendarConfig, EventTypeConfig, ScheduleConfig
from slotengine.domain.exceptions import ConfigurationError
from slotengine.domain.models import LocalTime

CONFIG_YAML = """
log_level: debug
max_range_days: 31
schedules:
  - id: alice-work
    timezone: Europe/Berlin
    owner: alice@example.com
    rules:
      - {day: 1, start: "09:00", end: "12:00"}
      - {day: 1, start: "13:00:00", end: "17:00"}
    overrides:
      - {date: 2025-01-17, available: false}
      - {date: 2025-01-14, start: "10:00", end: "14:00"}
event_types:
  - slug: intro-call
    title: Intro
    schedule: alice-work
    duration_minutes: 30
    buffer_after: 10
    limits:
      per_day: 4
calendars:
  - provider: mock
    calendar_id: alice@example.com
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadFromYaml:
    """Tests for AppConfig.load_from_yaml."""

    def test_load_valid_config(self, tmp_path):
        config = AppConfig.load_from_yaml(_write(tmp_path, CONFIG_YAML))

        assert config.log_level == "DEBUG"
        assert config.max_range_days == 31
        assert config.find_schedule("alice-work").owner == "alice@example.com"
        assert config.find_schedule("missing") is None
        assert config.calendars[0].provider == "mock"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.example.yaml"):
            AppConfig.load_from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(_write(tmp_path, "schedules: [unclosed"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(_write(tmp_path, "- a\n- b\n"))

    def test_empty_file_gives_defaults(self, tmp_path):
        config = AppConfig.load_from_yaml(_write(tmp_path, ""))

        assert config.schedules == []
        assert config.max_range_days == 62


class TestToDomain:
    """Conversion of config models to domain objects."""

    def test_schedule(self, tmp_path):
        config = AppConfig.load_from_yaml(_write(tmp_path, CONFIG_YAML))

        schedule = config.find_schedule("alice-work").to_domain()

        assert schedule.id == "alice-work"
        assert schedule.rules[1].start == LocalTime(13, 0)
        assert not schedule.override_for(date(2025, 1, 17)).is_available
        assert schedule.override_for(date(2025, 1, 14)).end == LocalTime(14, 0)

    def test_event_type(self, tmp_path):
        config = AppConfig.load_from_yaml(_write(tmp_path, CONFIG_YAML))

        event_type = config.find_event_type("Intro-Call").to_domain()

        assert event_type.schedule_id == "alice-work"
        assert event_type.step_minutes == 30
        assert event_type.buffer_after == 10
        assert event_type.min_notice_minutes == 60
        assert event_type.limits.per_day == 4

    def test_unknown_event_type(self, tmp_path):
        config = AppConfig.load_from_yaml(_write(tmp_path, CONFIG_YAML))

        with pytest.raises(ConfigurationError, match="intro-call"):
            config.find_event_type("demo")


class TestValidation:
    """Validation errors surface as pydantic ValidationError."""

    def test_invalid_timezone(self):
        with pytest.raises(ValidationError, match="Invalid timezone"):
            ScheduleConfig(id="x", timezone="Europe/Atlantis")

    def test_rule_end_before_start(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(id="x", timezone="UTC", rules=[{"day": 1, "start": "12:00", "end": "09:00"}])

    def test_rule_day_out_of_range(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(id="x", timezone="UTC", rules=[{"day": 7, "start": "09:00", "end": "10:00"}])

    def test_overlapping_rules_rejected(self):
        with pytest.raises(ValidationError, match="Overlapping rules"):
            ScheduleConfig(
                id="x",
                timezone="UTC",
                rules=[
                    {"day": 2, "start": "09:00", "end": "12:00"},
                    {"day": 2, "start": "11:00", "end": "13:00"},
                ],
            )

    def test_duplicate_override_dates(self):
        with pytest.raises(ValidationError, match="Duplicate override"):
            ScheduleConfig(
                id="x",
                timezone="UTC",
                overrides=[{"date": "2025-01-14"}, {"date": "2025-01-14", "available": False}],
            )

    def test_override_needs_both_times(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(id="x", timezone="UTC", overrides=[{"date": "2025-01-14", "start": "10:00"}])

    @pytest.mark.parametrize(
        "field,value",
        [("duration_minutes", 4), ("duration_minutes", 481), ("buffer_before", 121), ("max_days_in_advance", 0)],
    )
    def test_event_type_bounds(self, field, value):
        with pytest.raises(ValidationError):
            EventTypeConfig(slug="x", schedule="s", **{field: value})

    def test_event_type_unknown_schedule(self):
        with pytest.raises(ValidationError, match="unknown schedule"):
            AppConfig(
                schedules=[{"id": "a", "timezone": "UTC"}],
                event_types=[{"slug": "x", "schedule": "b"}],
            )

    def test_duplicate_schedule_ids(self):
        with pytest.raises(ValidationError, match="unique"):
            AppConfig(schedules=[{"id": "a", "timezone": "UTC"}, {"id": "a", "timezone": "UTC"}])

    def test_calendar_needs_token_env(self):
        with pytest.raises(ValidationError, match="access_token_env"):
            CalendarConfig(provider="google", calendar_id="primary")

    def test_unknown_provider(self):
        with pytest.raises(ValidationError):
            CalendarConfig(provider="caldav", calendar_id="primary", access_token_env="TOKEN")

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            AppConfig(log_level="chatty")
