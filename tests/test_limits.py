"""
Tests for booking frequency and horizon limits.
"""

from datetime import date

import pendulum

from slotengine.domain.limits import (
    BookingCounts,
    apply_booking_limits,
    apply_horizon,
    day_bucket,
    month_bucket,
    week_bucket,
)
from slotengine.domain.models import BookingLimits, Slot, resolve_timezone

BERLIN = resolve_timezone("Europe/Berlin")


def _slot(value: str) -> Slot:
    start = pendulum.parse(value, tz="Europe/Berlin")
    return Slot(start=start, end=start.add(minutes=30))


SLOTS = [
    _slot("2025-01-13 09:00"),  # Monday
    _slot("2025-01-13 10:00"),
    _slot("2025-01-14 09:00"),
    _slot("2025-01-20 09:00"),  # next Monday
    _slot("2025-02-03 09:00"),
]


class TestBuckets:
    """Bucket keys are computed in the schedule zone."""

    def test_day_bucket_uses_local_date(self):
        late = pendulum.parse("2025-01-13 23:30", tz="UTC")  # 00:30 on the 14th in Berlin

        assert day_bucket(late, BERLIN) == date(2025, 1, 14)

    def test_week_starts_on_monday(self):
        sunday = pendulum.parse("2025-01-19 12:00", tz="Europe/Berlin")

        assert week_bucket(sunday, BERLIN) == date(2025, 1, 13)

    def test_month_bucket_crosses_at_local_midnight(self):
        instant = pendulum.parse("2025-01-31 23:30", tz="UTC")

        assert month_bucket(instant, BERLIN) == (2025, 2)

    def test_record_counts_every_bucket(self):
        counts = BookingCounts()
        counts.record(pendulum.parse("2025-01-13 09:00", tz="Europe/Berlin"), BERLIN)
        counts.record(pendulum.parse("2025-01-15 09:00", tz="Europe/Berlin"), BERLIN)

        assert counts.per_day == {date(2025, 1, 13): 1, date(2025, 1, 15): 1}
        assert counts.per_week == {date(2025, 1, 13): 2}
        assert counts.per_month == {(2025, 1): 2}


class TestApplyBookingLimits:
    """Tests for apply_booking_limits."""

    def test_no_limits_keeps_everything(self):
        counts = BookingCounts(per_day={date(2025, 1, 13): 50})

        assert apply_booking_limits(SLOTS, BookingLimits(), counts, BERLIN) == SLOTS

    def test_day_limit_reached(self):
        counts = BookingCounts(per_day={date(2025, 1, 13): 2})

        result = apply_booking_limits(SLOTS, BookingLimits(per_day=2), counts, BERLIN)

        assert result == SLOTS[2:]

    def test_day_limit_not_reached(self):
        counts = BookingCounts(per_day={date(2025, 1, 13): 1})

        result = apply_booking_limits(SLOTS, BookingLimits(per_day=2), counts, BERLIN)

        assert result == SLOTS

    def test_week_limit_reached(self):
        counts = BookingCounts(per_week={date(2025, 1, 13): 3})

        result = apply_booking_limits(SLOTS, BookingLimits(per_week=3), counts, BERLIN)

        assert result == SLOTS[3:]

    def test_month_limit_exceeded(self):
        counts = BookingCounts(per_month={(2025, 1): 12})

        result = apply_booking_limits(SLOTS, BookingLimits(per_month=10), counts, BERLIN)

        assert result == [SLOTS[4]]


class TestApplyHorizon:
    """Tests for apply_horizon."""

    def test_no_horizon(self):
        assert apply_horizon(SLOTS, None) == SLOTS

    def test_slot_at_horizon_is_kept(self):
        horizon = pendulum.parse("2025-01-14 09:00", tz="Europe/Berlin")

        assert apply_horizon(SLOTS, horizon) == SLOTS[:3]

    def test_horizon_inside_repeated_hour(self):
        """A horizon at 01:30 EDT drops the later 01:00 EST slot."""
        first, second = (
            pendulum.datetime(2025, 11, 2, hour, 0, tz="UTC").in_timezone("America/New_York")
            for hour in (5, 6)
        )
        slots = [Slot(start=first, end=first.add(minutes=30)), Slot(start=second, end=second.add(minutes=30))]
        horizon = pendulum.datetime(2025, 11, 2, 5, 30, tz="UTC").in_timezone("America/New_York")

        assert apply_horizon(slots, horizon) == slots[:1]
