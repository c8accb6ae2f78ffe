"""
Mock calendar client for running without any calendar provider.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyBlock, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock client that serves busy time from a JSON file.

    The file holds a list of events:
    [{"calendarId": "alice", "start": "2025-01-15T10:00:00+01:00", "end": "..."}]

    Events without an offset are read in the requested timezone.
    """

    def __init__(self, calendar_id: str, data_file: Optional[Path] = None):
        """
        Initialize the mock client.

        Args:
            calendar_id: Only events with this calendarId are returned
            data_file: JSON file with events, defaults to the bundled sample
        """
        self.calendar_id = calendar_id
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.calendar_events = self._load_calendar_data()

    def _load_calendar_data(self) -> List[Dict[str, Any]]:
        """Load mock calendar data from JSON file."""
        if not self.data_file.exists():
            raise CalendarAPIError(f"Mock calendar data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                events = json.load(f)
        except json.JSONDecodeError as exc:
            raise CalendarAPIError(f"Invalid JSON in {self.data_file}: {exc}") from exc

        if not isinstance(events, list):
            raise CalendarAPIError(f"{self.data_file} must contain a list of events")

        return events

    async def get_busy_blocks(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyBlock]:
        """
        Load busy blocks overlapping the window from the mock data.
        """
        window = TimeRange(start=start_time, end=end_time)
        busy_blocks: List[BusyBlock] = []

        for event in self.calendar_events:
            if event.get("calendarId") != self.calendar_id:
                continue

            try:
                event_start = pendulum.parse(event["start"], tz=timezone).in_timezone(timezone)
                event_end = pendulum.parse(event["end"], tz=timezone).in_timezone(timezone)
                block = BusyBlock(start=event_start, end=event_end)

            except (KeyError, ValueError, AttributeError) as e:
                logger.warning("Skipping invalid mock event %s: %s", event, e)
                continue

            if block.overlaps(window):
                busy_blocks.append(block)

        return busy_blocks
