"""
Microsoft Graph API client for fetching busy time.
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


class GraphCalendarClient:
    """
    Client for Microsoft Graph API calendar operations.

    Uses the /calendar/getSchedule endpoint to fetch free/busy information
    for a single mailbox. Requests are made in UTC and returned blocks are
    converted into the caller's timezone.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"

    # Statuses that block a slot
    BUSY_STATUSES = {"busy", "tentative", "oof", "workingelsewhere"}

    def __init__(self, access_token: str, schedule_id: str, timeout: int = 30):
        """
        Initialize the Graph API client.

        Args:
            access_token: Valid Microsoft Graph access token
            schedule_id: Mailbox (email address) whose schedule is read
            timeout: Request timeout in seconds
        """
        self.schedule_id = schedule_id
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
        Get busy blocks for the configured mailbox.

        Args:
            start_time: Start of the time window
            end_time: End of the time window
            timezone: IANA timezone the returned blocks are expressed in

        Returns:
            List of busy blocks

        Raises:
            CalendarAPIError: If the API call fails
        """
        url = f"{self.GRAPH_API_ENDPOINT}/me/calendar/getSchedule"

        payload = {
            "schedules": [self.schedule_id],
            "startTime": {
                "dateTime": start_time.in_timezone("UTC").format("YYYY-MM-DDTHH:mm:ss"),
                "timeZone": "UTC",
            },
            "endTime": {
                "dateTime": end_time.in_timezone("UTC").format("YYYY-MM-DDTHH:mm:ss"),
                "timeZone": "UTC",
            },
            "availabilityViewInterval": 15,
        }

        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to fetch schedule from Microsoft Graph: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Microsoft Graph returned invalid JSON: {e}") from e

        return self._parse_schedule_response(data, timezone)

    def _parse_schedule_response(
        self,
        response_data: Dict[str, Any],
        timezone: str,
    ) -> List[BusyBlock]:
        """
        Parse the getSchedule API response into busy blocks.

        Response format:
        {
            "value": [
                {
                    "scheduleId": "user@example.com",
                    "scheduleItems": [
                        {
                            "status": "busy",
                            "start": {"dateTime": "...", "timeZone": "UTC"},
                            "end": {"dateTime": "...", "timeZone": "UTC"}
                        }
                    ]
                }
            ]
        }
        """
        busy_blocks: List[BusyBlock] = []

        for schedule in response_data.get("value", []):
            if "error" in schedule:
                message = schedule["error"].get("message", "unknown error")
                raise CalendarAPIError(
                    f"Microsoft Graph could not read schedule {schedule.get('scheduleId')}: {message}"
                )

            for item in schedule.get("scheduleItems", []):
                status = item.get("status", "").lower()

                if status not in self.BUSY_STATUSES:
                    continue

                try:
                    start = self._parse_datetime(item["start"], timezone)
                    end = self._parse_datetime(item["end"], timezone)
                    busy_blocks.append(BusyBlock(start=start, end=end))

                except (KeyError, ValueError) as e:
                    logger.warning("Could not parse schedule item: %s", e)
                    continue

        return busy_blocks

    def _parse_datetime(self, value: Dict[str, str], timezone: str) -> DateTime:
        """
        Parse a Graph dateTimeTimeZone object into the target timezone.

        Graph sends seven fractional digits ("2025-01-15T09:00:00.0000000"),
        they are dropped.
        """
        dt = pendulum.parse(value["dateTime"].split(".")[0], tz=value.get("timeZone", "UTC"))

        if isinstance(dt, DateTime):
            return dt.in_timezone(timezone)

        raise ValueError(f"Could not parse datetime: {value['dateTime']}")
