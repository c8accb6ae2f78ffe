"""
Configuration management using Pydantic models loaded from YAML.
"""

import datetime
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import ConfigurationError
from .domain.models import (
    BookingLimits,
    DateOverride,
    EventType,
    LocalTime,
    Schedule,
    WeeklyRule,
    resolve_timezone,
)
from .domain.windows import find_overlapping_rules


def _validate_time_string(value: str) -> str:
    LocalTime.parse(value)
    return value


class WeeklyRuleConfig(BaseModel):
    """Weekly rule: 0=Sunday .. 6=Saturday, times as HH:MM."""
    day: int
    start: str
    end: str

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: int) -> int:
        if value not in range(7):
            raise ValueError(f"day must be between 0 (Sunday) and 6 (Saturday), got {value}")
        return value

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _validate_time_string(value)

    @model_validator(mode="after")
    def validate_order(self) -> "WeeklyRuleConfig":
        if LocalTime.parse(self.end) <= LocalTime.parse(self.start):
            raise ValueError(f"Rule end {self.end} must be later than start {self.start}")
        return self

    def to_domain(self) -> WeeklyRule:
        return WeeklyRule(
            day_of_week=self.day,
            start=LocalTime.parse(self.start),
            end=LocalTime.parse(self.end),
        )


class DateOverrideConfig(BaseModel):
    """Date override; start/end only apply when available."""
    date: datetime.date
    available: bool = True
    start: Optional[str] = None
    end: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _validate_time_string(value)

    @model_validator(mode="after")
    def validate_hours(self) -> "DateOverrideConfig":
        if (self.start is None) != (self.end is None):
            raise ValueError(f"Override for {self.date} must set both start and end or neither")
        if self.start is not None and LocalTime.parse(self.end) <= LocalTime.parse(self.start):
            raise ValueError(f"Override end {self.end} must be later than start {self.start}")
        return self

    def to_domain(self) -> DateOverride:
        return DateOverride(
            day=self.date,
            is_available=self.available,
            start=LocalTime.parse(self.start) if self.start else None,
            end=LocalTime.parse(self.end) if self.end else None,
        )


class ScheduleConfig(BaseModel):
    """Availability schedule configuration."""
    id: str
    timezone: str
    owner: Optional[str] = None
    rules: List[WeeklyRuleConfig] = Field(default_factory=list)
    overrides: List[DateOverrideConfig] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        resolve_timezone(value)
        return value

    @field_validator("overrides")
    @classmethod
    def validate_unique_dates(cls, value: List[DateOverrideConfig]) -> List[DateOverrideConfig]:
        seen: set[datetime.date] = set()
        for override in value:
            if override.date in seen:
                raise ValueError(f"Duplicate override for {override.date}")
            seen.add(override.date)
        return value

    @model_validator(mode="after")
    def validate_rules_do_not_overlap(self) -> "ScheduleConfig":
        overlapping = find_overlapping_rules(rule.to_domain() for rule in self.rules)
        if overlapping:
            first, second = overlapping[0]
            raise ValueError(
                f"Overlapping rules for day {first.day_of_week}: "
                f"{first.start}-{first.end} and {second.start}-{second.end}"
            )
        return self

    def to_domain(self) -> Schedule:
        return Schedule(
            timezone=self.timezone,
            rules=[rule.to_domain() for rule in self.rules],
            overrides=[override.to_domain() for override in self.overrides],
            id=self.id,
            owner=self.owner,
        )


class LimitsConfig(BaseModel):
    """Booking frequency limits."""
    per_day: Optional[int] = Field(default=None, ge=1)
    per_week: Optional[int] = Field(default=None, ge=1)
    per_month: Optional[int] = Field(default=None, ge=1)

    def to_domain(self) -> BookingLimits:
        return BookingLimits(per_day=self.per_day, per_week=self.per_week, per_month=self.per_month)


class EventTypeConfig(BaseModel):
    """Bookable event type configuration."""
    slug: str
    schedule: str
    title: str = ""
    duration_minutes: int = Field(default=30, ge=5, le=480)
    slot_step_minutes: Optional[int] = Field(default=None, ge=5, le=480)
    buffer_before: int = Field(default=0, ge=0, le=120)
    buffer_after: int = Field(default=0, ge=0, le=120)
    min_notice_minutes: int = Field(default=60, ge=0)
    max_days_in_advance: Optional[int] = Field(default=None, ge=1, le=365)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)

    def to_domain(self) -> EventType:
        return EventType(
            duration_minutes=self.duration_minutes,
            slot_step_minutes=self.slot_step_minutes,
            buffer_before=self.buffer_before,
            buffer_after=self.buffer_after,
            min_notice_minutes=self.min_notice_minutes,
            max_days_in_advance=self.max_days_in_advance,
            limits=self.limits.to_domain(),
            slug=self.slug,
            title=self.title or self.slug,
            schedule_id=self.schedule,
        )


class CalendarConfig(BaseModel):
    """
    Connected calendar used as a busy-time source.

    The access token is read from the environment variable named by
    ``access_token_env``; obtaining and refreshing it happens elsewhere.
    """
    provider: Literal["google", "microsoft", "mock"]
    calendar_id: str
    access_token_env: Optional[str] = None
    data_file: Optional[Path] = None

    @model_validator(mode="after")
    def validate_credentials(self) -> "CalendarConfig":
        if self.provider != "mock" and not self.access_token_env:
            raise ValueError(f"Calendar '{self.calendar_id}' ({self.provider}) needs access_token_env")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    log_level: str = "INFO"
    max_range_days: int = Field(default=62, ge=1, le=366)
    output_timezone: Optional[str] = None
    schedules: List[ScheduleConfig] = Field(default_factory=list)
    event_types: List[EventTypeConfig] = Field(default_factory=list)
    calendars: List[CalendarConfig] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("output_timezone")
    @classmethod
    def validate_output_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            resolve_timezone(value)
        return value

    @model_validator(mode="after")
    def validate_references(self) -> "AppConfig":
        """Ensure ids are unique and event types point at known schedules."""
        schedule_ids = [schedule.id for schedule in self.schedules]
        if len(schedule_ids) != len(set(schedule_ids)):
            raise ValueError("Schedule ids must be unique")

        slugs = [event_type.slug for event_type in self.event_types]
        if len(slugs) != len(set(slugs)):
            raise ValueError("Event type slugs must be unique")

        for event_type in self.event_types:
            if event_type.schedule not in schedule_ids:
                raise ValueError(
                    f"Event type '{event_type.slug}' references unknown schedule '{event_type.schedule}'"
                )
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

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

        return cls(**data)

    def find_schedule(self, schedule_id: str) -> ScheduleConfig | None:
        for schedule in self.schedules:
            if schedule.id == schedule_id:
                return schedule
        return None

    def find_event_type(self, slug: str) -> EventTypeConfig:
        """
        Find an event type by slug.

        Raises:
            ConfigurationError: If no event type has that slug
        """
        for event_type in self.event_types:
            if event_type.slug.lower() == slug.lower():
                return event_type

        known = ", ".join(sorted(e.slug for e in self.event_types)) or "none"
        raise ConfigurationError(f"Unknown event type '{slug}'. Configured: {known}")


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
