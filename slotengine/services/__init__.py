"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import (
    AvailabilityService,
    BookingStoreProtocol,
    CalendarClientProtocol,
    ScheduleStoreProtocol,
)

__all__ = [
    "AvailabilityService",
    "BookingStoreProtocol",
    "CalendarClientProtocol",
    "ScheduleStoreProtocol",
]
