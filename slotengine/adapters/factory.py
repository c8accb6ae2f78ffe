"""
Calendar client factory.

Selects the client implementation from the provider tag stored with each
connected calendar.
"""

import os
from typing import List, Sequence

from ..config import CalendarConfig
from ..domain.exceptions import ConfigurationError
from ..services.availability import CalendarClientProtocol


def _read_access_token(calendar: CalendarConfig) -> str:
    token = os.environ.get(calendar.access_token_env or "", "")
    if not token:
        raise ConfigurationError(
            f"Environment variable {calendar.access_token_env} with the access token "
            f"for calendar '{calendar.calendar_id}' is not set"
        )
    return token


def get_calendar_client(calendar: CalendarConfig) -> CalendarClientProtocol:
    """
    Build the client for one configured calendar.

    Raises:
        ConfigurationError: If the provider is unsupported or credentials are missing
    """
    if calendar.provider == "google":
        from .google_client import GoogleCalendarClient
        return GoogleCalendarClient(
            access_token=_read_access_token(calendar),
            calendar_id=calendar.calendar_id,
        )
    elif calendar.provider == "microsoft":
        from .graph_client import GraphCalendarClient
        return GraphCalendarClient(
            access_token=_read_access_token(calendar),
            schedule_id=calendar.calendar_id,
        )
    elif calendar.provider == "mock":
        from .mock_calendar_client import MockCalendarClient
        return MockCalendarClient(
            calendar_id=calendar.calendar_id,
            data_file=calendar.data_file,
        )
    else:
        raise ConfigurationError(f"Unsupported calendar provider: {calendar.provider}")


def build_calendar_clients(calendars: Sequence[CalendarConfig]) -> List[CalendarClientProtocol]:
    """Build clients for every configured calendar."""
    return [get_calendar_client(calendar) for calendar in calendars]
