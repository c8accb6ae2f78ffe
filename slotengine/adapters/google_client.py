"""
Google Calendar API client for fetching busy time.
"""

import asyncio
import logging
from typing import Any, Dict, List

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyBlock

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for the Google Calendar freeBusy endpoint.
    """

    API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(self, access_token: str, calendar_id: str = "primary", timeout: int = 30):
        self.calendar_id = calendar_id
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    async def get_busy_blocks(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyBlock]:
        """Async wrapper running the blocking request in a worker thread."""
        return await asyncio.to_thread(self.fetch_busy_blocks, start_time, end_time, timezone)

    def fetch_busy_blocks(
        self,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
    ) -> List[BusyBlock]:
        """
        Query freeBusy for the configured calendar.

        Raises:
            CalendarAPIError: If the request fails or Google reports an error
                for the calendar
        """
        payload = {
            "timeMin": start_time.in_timezone("UTC").to_iso8601_string(),
            "timeMax": end_time.in_timezone("UTC").to_iso8601_string(),
            "timeZone": "UTC",
            "items": [{"id": self.calendar_id}],
        }

        try:
            response = requests.post(
                f"{self.API_ENDPOINT}/freeBusy",
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to fetch busy times from Google Calendar: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Google Calendar returned invalid JSON: {e}") from e

        return self._parse_free_busy_response(data, timezone)

    def _parse_free_busy_response(
        self,
        response_data: Dict[str, Any],
        timezone: str,
    ) -> List[BusyBlock]:
        """
        Response format:
        {
            "calendars": {
                "primary": {
                    "busy": [{"start": "2025-01-15T10:00:00Z", "end": "..."}],
                    "errors": [{"domain": "global", "reason": "notFound"}]
                }
            }
        }
        """
        calendar = response_data.get("calendars", {}).get(self.calendar_id, {})

        errors = calendar.get("errors") or []
        if errors:
            reasons = ", ".join(error.get("reason", "unknown") for error in errors)
            raise CalendarAPIError(
                f"Google Calendar could not read calendar {self.calendar_id}: {reasons}"
            )

        busy_blocks: List[BusyBlock] = []

        for block in calendar.get("busy", []):
            try:
                start = pendulum.parse(block["start"]).in_timezone(timezone)
                end = pendulum.parse(block["end"]).in_timezone(timezone)
                busy_blocks.append(BusyBlock(start=start, end=end))

            except (KeyError, ValueError, AttributeError) as e:
                logger.warning("Could not parse busy block %s: %s", block, e)
                continue

        return busy_blocks
