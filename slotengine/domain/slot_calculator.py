"""
Core business logic for generating bookable slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O, no logging).
"""

from datetime import date
from typing import Iterator, List, Optional, Sequence

import pendulum
from pendulum import DateTime

from .busy import has_conflict, merge_busy_blocks
from .clock import Clock, SystemClock
from .exceptions import InvalidRangeError
from .limits import apply_horizon
from .models import (
    EventType,
    LocalTime,
    Schedule,
    Slot,
    TimeRange,
    Window,
    Zone,
    as_utc,
    validate_generation_minutes,
)
from .windows import resolve_windows

DEFAULT_MAX_RANGE_DAYS = 62


def localize(day: date, local_time: LocalTime, zone: Zone) -> Optional[DateTime]:
    """
    Resolve a wall-clock time on ``day`` to an instant in ``zone``.

    Returns None when the local time does not exist on that date (spring
    forward gap). Ambiguous times (fall back) resolve to the first occurrence.
    """
    naive = pendulum.naive(day.year, day.month, day.day, local_time.hour, local_time.minute, fold=0)
    resolved = zone.convert(naive).in_timezone("UTC").in_timezone(zone)

    if resolved.naive() != naive:
        return None

    return resolved


def generate_day_slots(
    day: date,
    windows: Sequence[Window],
    duration_minutes: int,
    step_minutes: int,
    busy_blocks: Sequence[TimeRange],
    buffer_before: int,
    buffer_after: int,
    notice_cutoff: DateTime,
    zone: Zone,
) -> List[Slot]:
    """
    Generate candidate slots for one civil date.

    For each window, candidates start at the window start and advance by
    ``step_minutes`` while they still fit. A candidate is dropped if it
    starts before ``notice_cutoff`` or if its buffered footprint overlaps a
    busy block. A window whose start or end does not exist on ``day`` is
    skipped.

    All offsets are absolute minutes added to instants, so a window crossing
    a DST transition yields as many slots as its real length allows.
    """
    validate_generation_minutes(duration_minutes, step_minutes, buffer_before, buffer_after)

    slots: List[Slot] = []
    cutoff = as_utc(notice_cutoff)

    for window_start, window_end in windows:
        start_instant = localize(day, window_start, zone)
        end_instant = localize(day, window_end, zone)

        if start_instant is None or end_instant is None:
            continue

        # The walk runs in UTC and slots are tagged in the schedule zone on emit.
        candidate_start = as_utc(start_instant)
        end_utc = as_utc(end_instant)

        while candidate_start.add(minutes=duration_minutes) <= end_utc:
            candidate_end = candidate_start.add(minutes=duration_minutes)

            if candidate_start >= cutoff:
                slot = Slot(start=candidate_start.in_timezone(zone), end=candidate_end.in_timezone(zone))
                footprint = slot.padded(buffer_before, buffer_after)

                if not has_conflict(footprint, busy_blocks):
                    slots.append(slot)

            candidate_start = candidate_start.add(minutes=step_minutes)

    return slots


class SlotCalculator:
    """
    Generates bookable slots for a schedule over a date range.

    Algorithm:
    1. Resolve the schedule zone and validate the requested range
    2. Merge busy blocks once for the whole request
    3. For each civil date in the range (in the schedule zone), resolve the
       day's windows and generate that day's slots
    4. Concatenate in date order and drop slots beyond the horizon

    The clock is injected so that notice and horizon cutoffs are
    deterministic for a given input.
    """

    def __init__(self, clock: Optional[Clock] = None, max_range_days: int = DEFAULT_MAX_RANGE_DAYS):
        self.clock = clock or SystemClock()
        self.max_range_days = max_range_days

    def generate_range(
        self,
        schedule: Schedule,
        event_type: EventType,
        busy_blocks: Sequence[TimeRange],
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[Slot]:
        """
        Generate all bookable slots for the civil dates covered by the range.

        Args:
            schedule: Weekly rules and overrides with their timezone
            event_type: Duration, step, buffers, notice and horizon settings
            busy_blocks: Busy time from all connected calendars, unmerged
            range_start: First instant of the requested range
            range_end: Last instant of the requested range

        Returns:
            Slots ordered by start, tagged in the schedule zone

        Raises:
            InvalidTimezoneError: If the schedule timezone does not resolve
            InvalidRangeError: If the range is reversed or too long
        """
        zone = schedule.zone()
        days = self._days_in_range(range_start, range_end, zone)
        params = event_type.generation_params(self.clock.now(), zone)
        merged = merge_busy_blocks(busy_blocks)

        slots: List[Slot] = []

        for day in days:
            windows = resolve_windows(schedule, day)

            if not windows:
                continue

            slots.extend(
                generate_day_slots(
                    day=day,
                    windows=windows,
                    duration_minutes=params.duration_minutes,
                    step_minutes=params.step_minutes,
                    busy_blocks=merged,
                    buffer_before=params.buffer_before,
                    buffer_after=params.buffer_after,
                    notice_cutoff=params.notice_cutoff,
                    zone=zone,
                )
            )

        return apply_horizon(slots, params.horizon)

    def is_bookable(
        self,
        schedule: Schedule,
        event_type: EventType,
        busy_blocks: Sequence[TimeRange],
        slot_start: DateTime,
    ) -> bool:
        """
        Re-check a single slot at reservation time.

        True only if a slot starting exactly at ``slot_start`` would be
        generated for its date with the given busy data.
        """
        zone = schedule.zone()
        local_start = slot_start.in_timezone(zone)
        slots = self.generate_range(schedule, event_type, busy_blocks, local_start, local_start)

        target = as_utc(slot_start)
        return any(as_utc(slot.start) == target for slot in slots)

    def _days_in_range(self, range_start: DateTime, range_end: DateTime, zone: Zone) -> List[date]:
        """Civil dates in ``zone`` touched by the range, validated up front."""
        if as_utc(range_end) < as_utc(range_start):
            raise InvalidRangeError(
                f"Range end {range_end} must not be before range start {range_start}"
            )

        first = range_start.in_timezone(zone).date()
        last = range_end.in_timezone(zone).date()
        day_count = first.diff(last).in_days() + 1

        if day_count > self.max_range_days:
            raise InvalidRangeError(
                f"Requested range covers {day_count} days, the maximum is {self.max_range_days}"
            )

        return list(self._iter_days(first, last))

    @staticmethod
    def _iter_days(first: date, last: date) -> Iterator[date]:
        current = first
        while current <= last:
            yield current
            current = current.add(days=1)
