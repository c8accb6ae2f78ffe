"""
In-memory schedule and booking stores.
"""

from typing import Dict, Iterable, List, Optional

from pendulum import DateTime

from ..domain.exceptions import ScheduleNotFoundError
from ..domain.limits import BookingCounts
from ..domain.models import BusyBlock, Schedule, TimeRange, as_utc, resolve_timezone


class InMemoryScheduleStore:
    """Schedules keyed by id."""

    def __init__(self, schedules: Iterable[Schedule] = ()):
        self._schedules: Dict[str, Schedule] = {schedule.id: schedule for schedule in schedules}

    def add(self, schedule: Schedule) -> None:
        self._schedules[schedule.id] = schedule

    async def get_schedule(self, schedule_id: str) -> Schedule:
        try:
            return self._schedules[schedule_id]
        except KeyError:
            raise ScheduleNotFoundError(f"Schedule not found: '{schedule_id}'") from None


class InMemoryBookingStore:
    """
    Confirmed bookings per schedule.

    Bookings block their own time like calendar busy blocks, and are counted
    per day, week and month in the timezone passed by the caller.
    """

    def __init__(self, bookings: Optional[Dict[str, Iterable[TimeRange]]] = None):
        self._bookings: Dict[str, List[BusyBlock]] = {}
        for schedule_id, booked in (bookings or {}).items():
            for booking in booked:
                self.add(schedule_id, booking.start, booking.end)

    def add(self, schedule_id: str, start_time: DateTime, end_time: DateTime) -> None:
        self._bookings.setdefault(schedule_id, []).append(BusyBlock(start=start_time, end=end_time))

    async def get_bookings(
        self,
        schedule_id: str,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyBlock]:
        """Confirmed bookings overlapping the window, as busy blocks in ``timezone``."""
        window = TimeRange(start=start_time, end=end_time)

        return [
            BusyBlock(start=booking.start.in_timezone(timezone), end=booking.end.in_timezone(timezone))
            for booking in self._bookings.get(schedule_id, [])
            if booking.overlaps(window)
        ]

    async def get_booking_counts(
        self,
        schedule_id: str,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> BookingCounts:
        zone = resolve_timezone(timezone)
        counts = BookingCounts()
        first, last = as_utc(start_time), as_utc(end_time)

        for booking in self._bookings.get(schedule_id, []):
            if first <= as_utc(booking.start) <= last:
                counts.record(booking.start, zone)

        return counts
