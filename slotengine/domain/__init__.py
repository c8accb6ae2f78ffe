"""
Domain layer - Pure business logic without external dependencies.
"""

from .busy import merge_busy_blocks
from .clock import Clock, FixedClock, SystemClock
from .limits import BookingCounts, apply_booking_limits, apply_horizon
from .models import (
    BookingLimits,
    BusyBlock,
    DateOverride,
    EventType,
    GenerationParams,
    LocalTime,
    Schedule,
    Slot,
    TimeRange,
    WeeklyRule,
)
from .slot_calculator import SlotCalculator, generate_day_slots
from .windows import resolve_windows

__all__ = [
    "BookingCounts",
    "BookingLimits",
    "BusyBlock",
    "Clock",
    "DateOverride",
    "EventType",
    "FixedClock",
    "GenerationParams",
    "LocalTime",
    "Schedule",
    "Slot",
    "SlotCalculator",
    "SystemClock",
    "TimeRange",
    "WeeklyRule",
    "apply_booking_limits",
    "apply_horizon",
    "generate_day_slots",
    "merge_busy_blocks",
    "resolve_windows",
]
