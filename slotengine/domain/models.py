"""
Domain models for schedules, busy time and generated slots.
"""

import re
from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional, Sequence, Tuple, Union

import pendulum
from pendulum import DateTime, FixedTimezone, Timezone

from .exceptions import ConfigurationError, InvalidTimezoneError

Zone = Union[Timezone, FixedTimezone]

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def as_utc(instant: DateTime) -> DateTime:
    """
    The same instant tagged UTC.

    Aware datetimes sharing one tzinfo compare by wall clock, which is wrong
    inside a repeated fall-back hour. Ordering and overlap go through UTC.
    """
    return instant.in_timezone("UTC")


def resolve_timezone(name: str) -> Zone:
    """
    Resolve an IANA timezone identifier.

    Raises:
        InvalidTimezoneError: If the identifier is unknown. There is no
            fallback to UTC.
    """
    if not name:
        raise InvalidTimezoneError(name)
    try:
        return pendulum.timezone(name)
    except (ValueError, KeyError) as exc:
        raise InvalidTimezoneError(name) from exc


@dataclass(frozen=True, order=True)
class LocalTime:
    """
    A wall-clock time of day without a timezone.

    Seconds are accepted when parsing but discarded.
    """
    hour: int
    minute: int

    def __post_init__(self):
        if not 0 <= self.hour <= 23:
            raise ConfigurationError(f"Hour must be between 0 and 23, got {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ConfigurationError(f"Minute must be between 0 and 59, got {self.minute}")

    @classmethod
    def parse(cls, value: str) -> "LocalTime":
        """Parse ``HH:MM`` or ``HH:MM:SS``."""
        match = _TIME_PATTERN.match(value.strip())
        if not match:
            raise ConfigurationError(f"Invalid time of day: '{value}' (expected HH:MM or HH:MM:SS)")
        if match.group(3) is not None and int(match.group(3)) > 59:
            raise ConfigurationError(f"Invalid time of day: '{value}'")
        return cls(hour=int(match.group(1)), minute=int(match.group(2)))

    @classmethod
    def from_time(cls, value: time) -> "LocalTime":
        return cls(hour=value.hour, minute=value.minute)

    def total_minutes(self) -> int:
        """Minutes since midnight."""
        return self.hour * 60 + self.minute

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


Window = Tuple[LocalTime, LocalTime]


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if as_utc(self.start) >= as_utc(self.end):
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((as_utc(self.end) - as_utc(self.start)).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Half-open overlap check; touching ranges do not overlap."""
        return as_utc(self.start) < as_utc(other.end) and as_utc(other.start) < as_utc(self.end)

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start, key=as_utc)
        end = min(self.end, other.end, key=as_utc)

        return TimeRange(start=start, end=end)

    def padded(self, before_minutes: int, after_minutes: int) -> "TimeRange":
        """Return the range widened by the given buffers."""
        return TimeRange(
            start=self.start.subtract(minutes=before_minutes),
            end=self.end.add(minutes=after_minutes),
        )

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class BusyBlock(TimeRange):
    """An absolute interval of existing commitment from a connected calendar."""


@dataclass(frozen=True)
class Slot(TimeRange):
    """
    A bookable slot. ``end`` is always ``start`` plus the event duration.
    """

    def in_timezone(self, zone: Union[str, Zone]) -> "Slot":
        """Reproject the slot instants into another zone."""
        return Slot(start=self.start.in_timezone(zone), end=self.end.in_timezone(zone))

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, DD.MM.YYYY | HH:MM – HH:MM (N min)
        """
        date_str = self.start.format("dddd, DD.MM.YYYY")
        time_str = f"{self.start.format('HH:mm')} – {self.end.format('HH:mm')}"
        return f"{date_str} | {time_str} ({self.duration_minutes()} min)"


@dataclass(frozen=True)
class WeeklyRule:
    """
    A recurring local window on one weekday.

    ``day_of_week`` uses 0=Sunday .. 6=Saturday. A rule never spans midnight.
    """
    day_of_week: int
    start: LocalTime
    end: LocalTime

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise ConfigurationError(
                f"day_of_week must be between 0 (Sunday) and 6 (Saturday), got {self.day_of_week}"
            )
        if self.end <= self.start:
            raise ConfigurationError(
                f"Invalid rule for day {self.day_of_week}: start {self.start} must be before end {self.end}"
            )

    def window(self) -> Window:
        return (self.start, self.end)


@dataclass(frozen=True)
class DateOverride:
    """
    A one-off exception for a single civil date.

    - ``is_available=False``: no windows at all on that date
    - ``is_available=True`` with start/end: that window replaces the weekly rules
    - ``is_available=True`` without times: weekly rules apply unchanged
    """
    day: date
    is_available: bool = True
    start: Optional[LocalTime] = None
    end: Optional[LocalTime] = None

    def __post_init__(self):
        if (self.start is None) != (self.end is None):
            raise ConfigurationError(
                f"Override for {self.day} must set both start and end or neither"
            )
        if self.start is not None and self.end is not None and self.end <= self.start:
            raise ConfigurationError(
                f"Invalid override for {self.day}: start {self.start} must be before end {self.end}"
            )

    @property
    def has_custom_hours(self) -> bool:
        return self.start is not None and self.end is not None


@dataclass(frozen=True)
class Schedule:
    """
    Weekly rules plus date overrides, all interpreted in ``timezone``.
    """
    timezone: str
    rules: Sequence[WeeklyRule] = ()
    overrides: Sequence[DateOverride] = ()
    id: str = "default"
    owner: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "overrides", tuple(self.overrides))

        resolve_timezone(self.timezone)

        seen: set[date] = set()
        for override in self.overrides:
            if override.day in seen:
                raise ConfigurationError(
                    f"Schedule '{self.id}' has more than one override for {override.day}"
                )
            seen.add(override.day)

    def zone(self) -> Zone:
        return resolve_timezone(self.timezone)

    def override_for(self, day: date) -> Optional[DateOverride]:
        for override in self.overrides:
            if override.day == day:
                return override
        return None

    def rules_for(self, day_of_week: int) -> List[WeeklyRule]:
        return [rule for rule in self.rules if rule.day_of_week == day_of_week]


@dataclass(frozen=True)
class BookingLimits:
    """Maximum number of bookings per day, week and month. None means unlimited."""
    per_day: Optional[int] = None
    per_week: Optional[int] = None
    per_month: Optional[int] = None

    def __post_init__(self):
        for name in ("per_day", "per_week", "per_month"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ConfigurationError(f"Booking limit {name} must be at least 1, got {value}")

    def is_empty(self) -> bool:
        return self.per_day is None and self.per_week is None and self.per_month is None


@dataclass(frozen=True)
class GenerationParams:
    """
    Resolved per-request parameters for slot generation.

    ``notice_cutoff`` is the earliest instant a slot may start; ``horizon`` is
    the latest, when configured.
    """
    duration_minutes: int
    step_minutes: int
    buffer_before: int
    buffer_after: int
    notice_cutoff: DateTime
    horizon: Optional[DateTime] = None

    def __post_init__(self):
        validate_generation_minutes(
            self.duration_minutes, self.step_minutes, self.buffer_before, self.buffer_after
        )


def validate_generation_minutes(duration: int, step: int, buffer_before: int, buffer_after: int) -> None:
    """Fail fast on non-positive duration/step or negative buffers."""
    if duration <= 0:
        raise ConfigurationError(f"Slot duration must be greater than zero, got {duration}")
    if step <= 0:
        raise ConfigurationError(f"Slot step must be greater than zero, got {step}")
    if buffer_before < 0 or buffer_after < 0:
        raise ConfigurationError(
            f"Buffers must not be negative, got before={buffer_before} after={buffer_after}"
        )


@dataclass(frozen=True)
class EventType:
    """
    Booking constraints of an event type.

    The slot step defaults to the duration when not set.
    """
    duration_minutes: int
    slot_step_minutes: Optional[int] = None
    buffer_before: int = 0
    buffer_after: int = 0
    min_notice_minutes: int = 60
    max_days_in_advance: Optional[int] = None
    limits: BookingLimits = field(default_factory=BookingLimits)
    slug: str = ""
    title: str = ""
    schedule_id: Optional[str] = None

    def __post_init__(self):
        validate_generation_minutes(
            self.duration_minutes, self.step_minutes, self.buffer_before, self.buffer_after
        )
        if self.min_notice_minutes < 0:
            raise ConfigurationError(
                f"min_notice_minutes must not be negative, got {self.min_notice_minutes}"
            )
        if self.max_days_in_advance is not None and self.max_days_in_advance < 1:
            raise ConfigurationError(
                f"max_days_in_advance must be at least 1, got {self.max_days_in_advance}"
            )

    @property
    def step_minutes(self) -> int:
        if self.slot_step_minutes is None:
            return self.duration_minutes
        return self.slot_step_minutes

    def generation_params(self, now: DateTime, zone: Zone) -> GenerationParams:
        """Resolve notice cutoff and horizon against ``now``."""
        local_now = now.in_timezone(zone)
        horizon = None
        if self.max_days_in_advance is not None:
            horizon = local_now.add(days=self.max_days_in_advance)

        return GenerationParams(
            duration_minutes=self.duration_minutes,
            step_minutes=self.step_minutes,
            buffer_before=self.buffer_before,
            buffer_after=self.buffer_after,
            notice_cutoff=local_now.add(minutes=self.min_notice_minutes),
            horizon=horizon,
        )
