"""
Day window resolution: which local windows apply on a given civil date.
"""

from datetime import date
from itertools import combinations
from typing import Iterable, List, Tuple

from .models import Schedule, WeeklyRule, Window


def day_of_week(day: date) -> int:
    """Weekday index used by weekly rules (0=Sunday .. 6=Saturday)."""
    return day.isoweekday() % 7


def resolve_windows(schedule: Schedule, day: date) -> List[Window]:
    """
    Determine the effective local windows for ``day``.

    An override for the date takes precedence:
    - unavailable: no windows
    - custom hours: exactly that window
    - available without hours: fall through to the weekly rules

    Weekly rules matching the weekday are returned ordered by start time.
    Overlapping rules are returned as independent windows.
    """
    override = schedule.override_for(day)

    if override is not None:
        if not override.is_available:
            return []
        if override.has_custom_hours:
            return [(override.start, override.end)]

    rules = sorted(schedule.rules_for(day_of_week(day)), key=lambda r: (r.start, r.end))
    return [rule.window() for rule in rules]


def find_overlapping_rules(rules: Iterable[WeeklyRule]) -> List[Tuple[WeeklyRule, WeeklyRule]]:
    """
    Return every pair of rules on the same weekday whose windows overlap.

    Touching windows (09:00-12:00 and 12:00-13:00) do not overlap.
    """
    by_day: dict[int, List[WeeklyRule]] = {}
    for rule in rules:
        by_day.setdefault(rule.day_of_week, []).append(rule)

    overlapping: List[Tuple[WeeklyRule, WeeklyRule]] = []
    for day in sorted(by_day):
        for first, second in combinations(by_day[day], 2):
            if first.start < second.end and second.start < first.end:
                overlapping.append((first, second))

    return overlapping
