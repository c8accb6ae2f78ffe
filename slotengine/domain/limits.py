"""
Frequency and horizon limits applied after slot generation.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from pendulum import DateTime

from .models import BookingLimits, Slot, Zone, as_utc


def day_bucket(instant: DateTime, zone: Zone) -> date:
    """Local civil date of ``instant``."""
    return instant.in_timezone(zone).date()


def week_bucket(instant: DateTime, zone: Zone) -> date:
    """Monday of the local week containing ``instant``."""
    return instant.in_timezone(zone).date().start_of("week")


def month_bucket(instant: DateTime, zone: Zone) -> Tuple[int, int]:
    """Local (year, month) of ``instant``."""
    local = instant.in_timezone(zone)
    return (local.year, local.month)


@dataclass
class BookingCounts:
    """
    Existing booking counts per bucket, as reported by the booking store.
    """
    per_day: Dict[date, int] = field(default_factory=dict)
    per_week: Dict[date, int] = field(default_factory=dict)
    per_month: Dict[Tuple[int, int], int] = field(default_factory=dict)

    def record(self, instant: DateTime, zone: Zone) -> None:
        """Count one booking starting at ``instant`` in every bucket."""
        day_key = day_bucket(instant, zone)
        week_key = week_bucket(instant, zone)
        month_key = month_bucket(instant, zone)

        self.per_day[day_key] = self.per_day.get(day_key, 0) + 1
        self.per_week[week_key] = self.per_week.get(week_key, 0) + 1
        self.per_month[month_key] = self.per_month.get(month_key, 0) + 1


def _limit_reached(count: int, limit: Optional[int]) -> bool:
    return limit is not None and count >= limit


def is_bucket_full(instant: DateTime, limits: BookingLimits, counts: BookingCounts, zone: Zone) -> bool:
    """True if any bucket containing ``instant`` has met its limit."""
    if _limit_reached(counts.per_day.get(day_bucket(instant, zone), 0), limits.per_day):
        return True
    if _limit_reached(counts.per_week.get(week_bucket(instant, zone), 0), limits.per_week):
        return True
    return _limit_reached(counts.per_month.get(month_bucket(instant, zone), 0), limits.per_month)


def apply_booking_limits(
    slots: Iterable[Slot],
    limits: BookingLimits,
    counts: BookingCounts,
    zone: Zone,
) -> List[Slot]:
    """
    Drop slots whose day, week or month already holds the maximum number
    of bookings. Buckets are computed in the schedule zone.
    """
    if limits.is_empty():
        return list(slots)

    return [
        slot for slot in slots
        if not is_bucket_full(slot.start, limits, counts, zone)
    ]


def apply_horizon(slots: Iterable[Slot], horizon: Optional[DateTime]) -> List[Slot]:
    """Drop slots starting after ``horizon``."""
    if horizon is None:
        return list(slots)

    limit = as_utc(horizon)
    return [slot for slot in slots if as_utc(slot.start) <= limit]
