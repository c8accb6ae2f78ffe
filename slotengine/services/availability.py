"""
Application service for computing bookable availability.

The service coordinates the collaborators (schedule store, calendar clients,
booking store) and delegates the actual slot generation to the domain-level
``SlotCalculator``. Each collaborator is reached through a small protocol so
that real adapters, in-memory stores or test stubs can be plugged in.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError, ConfigurationError
from ..domain.limits import BookingCounts, apply_booking_limits
from ..domain.models import BusyBlock, EventType, Schedule, Slot, resolve_timezone
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)

# Busy time is fetched with one extra day on each side of the request.
BUSY_QUERY_PADDING_DAYS = 1


class ScheduleStoreProtocol(Protocol):
    """Protocol describing schedule lookup."""

    async def get_schedule(self, schedule_id: str) -> Schedule:
        """Return the schedule or raise ScheduleNotFoundError."""


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    async def get_busy_blocks(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyBlock]:
        """Return busy blocks overlapping the window."""


class BookingStoreProtocol(Protocol):
    """Protocol describing confirmed booking lookup."""

    async def get_bookings(
        self,
        schedule_id: str,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyBlock]:
        """Return confirmed bookings overlapping the window as busy blocks."""

    async def get_booking_counts(
        self,
        schedule_id: str,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> BookingCounts:
        """Return confirmed booking counts per day, week and month bucket."""


class AvailabilityService:
    """
    Orchestrates schedule lookup, busy-time retrieval, slot generation and
    frequency limiting.
    """

    def __init__(
        self,
        schedule_store: ScheduleStoreProtocol,
        calendar_clients: Sequence[CalendarClientProtocol],
        slot_calculator: SlotCalculator,
        booking_store: Optional[BookingStoreProtocol] = None,
    ) -> None:
        self._schedule_store = schedule_store
        self._calendar_clients = list(calendar_clients)
        self._slot_calculator = slot_calculator
        self._booking_store = booking_store

    async def find_slots(
        self,
        *,
        event_type: EventType,
        range_start: DateTime,
        range_end: DateTime,
        schedule_id: Optional[str] = None,
        output_timezone: Optional[str] = None,
    ) -> List[Slot]:
        """
        Compute bookable slots for an event type over a range.

        Args:
            event_type: Event type constraints
            range_start: Start of the requested range
            range_end: End of the requested range
            schedule_id: Schedule to use, defaults to the event type's schedule
            output_timezone: Optional zone to reproject slots into

        Returns:
            Ordered list of bookable slots
        """
        output_zone = resolve_timezone(output_timezone) if output_timezone else None

        schedule = await self._get_schedule(event_type, schedule_id)
        busy_blocks = await self._collect_busy_blocks(schedule, range_start, range_end)

        slots = self.calculate_slots(
            schedule=schedule,
            event_type=event_type,
            busy_blocks=busy_blocks,
            range_start=range_start,
            range_end=range_end,
        )
        logger.debug("Generated %d slots for schedule %s", len(slots), schedule.id)

        slots = await self.apply_limits(
            schedule=schedule,
            event_type=event_type,
            slots=slots,
        )

        if output_zone is not None:
            slots = [slot.in_timezone(output_zone) for slot in slots]

        return slots

    async def is_slot_available(
        self,
        *,
        event_type: EventType,
        slot_start: DateTime,
        schedule_id: Optional[str] = None,
    ) -> bool:
        """
        Re-check one slot against fresh calendar busy time and confirmed
        bookings before it is reserved.
        """
        schedule = await self._get_schedule(event_type, schedule_id)
        busy_blocks = await self._collect_busy_blocks(schedule, slot_start, slot_start)

        return self._slot_calculator.is_bookable(schedule, event_type, busy_blocks, slot_start)

    async def fetch_busy_blocks(
        self,
        *,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyBlock]:
        """
        Fetch busy blocks from every connected calendar, concurrently.

        A calendar that fails is logged and treated as having no busy time.
        """
        query_start = start_time.subtract(days=BUSY_QUERY_PADDING_DAYS)
        query_end = end_time.add(days=BUSY_QUERY_PADDING_DAYS)

        results = await asyncio.gather(
            *(
                self._fetch_from_client(client, query_start, query_end, timezone)
                for client in self._calendar_clients
            )
        )

        busy_blocks: List[BusyBlock] = []
        for blocks in results:
            busy_blocks.extend(blocks)

        return busy_blocks

    def calculate_slots(
        self,
        *,
        schedule: Schedule,
        event_type: EventType,
        busy_blocks: Sequence[BusyBlock],
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[Slot]:
        """Calculate bookable slots from already fetched busy data."""
        return self._slot_calculator.generate_range(
            schedule=schedule,
            event_type=event_type,
            busy_blocks=busy_blocks,
            range_start=range_start,
            range_end=range_end,
        )

    async def fetch_booked_blocks(
        self,
        *,
        schedule: Schedule,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[BusyBlock]:
        """Confirmed bookings of the schedule around the window, as busy blocks."""
        if self._booking_store is None:
            return []

        blocks = await self._booking_store.get_bookings(
            schedule.id,
            start_time.subtract(days=BUSY_QUERY_PADDING_DAYS),
            end_time.add(days=BUSY_QUERY_PADDING_DAYS),
            schedule.timezone,
        )
        logger.debug("Fetched %d confirmed bookings for schedule %s", len(blocks), schedule.id)
        return blocks

    async def apply_limits(
        self,
        *,
        schedule: Schedule,
        event_type: EventType,
        slots: List[Slot],
    ) -> List[Slot]:
        """Drop slots in days, weeks or months that are already fully booked."""
        if not slots or event_type.limits.is_empty() or self._booking_store is None:
            return slots

        zone = schedule.zone()
        # Counts cover whole weeks and months around the slots.
        query_start = slots[0].start.in_timezone(zone).start_of("month").start_of("week")
        query_end = slots[-1].start.in_timezone(zone).end_of("month").end_of("week")

        counts = await self._booking_store.get_booking_counts(
            schedule.id,
            query_start,
            query_end,
            schedule.timezone,
        )

        limited = apply_booking_limits(slots, event_type.limits, counts, zone)
        logger.debug(
            "Booking limits removed %d of %d slots", len(slots) - len(limited), len(slots)
        )
        return limited

    async def _get_schedule(self, event_type: EventType, schedule_id: Optional[str]) -> Schedule:
        target_schedule = schedule_id or event_type.schedule_id
        if not target_schedule:
            raise ConfigurationError(
                f"Event type '{event_type.slug}' has no schedule and none was requested"
            )

        return await self._schedule_store.get_schedule(target_schedule)

    async def _collect_busy_blocks(
        self,
        schedule: Schedule,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[BusyBlock]:
        """Calendar busy time plus confirmed bookings."""
        calendar_blocks, booked_blocks = await asyncio.gather(
            self.fetch_busy_blocks(
                start_time=start_time,
                end_time=end_time,
                timezone=schedule.timezone,
            ),
            self.fetch_booked_blocks(
                schedule=schedule,
                start_time=start_time,
                end_time=end_time,
            ),
        )
        return calendar_blocks + booked_blocks

    @staticmethod
    async def _fetch_from_client(
        client: CalendarClientProtocol,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyBlock]:
        try:
            blocks = await client.get_busy_blocks(start_time, end_time, timezone)
        except CalendarAPIError as exc:
            logger.warning("Skipping calendar %s: %s", type(client).__name__, exc)
            return []

        logger.debug("Fetched %d busy blocks from %s", len(blocks), type(client).__name__)
        return blocks
