"""
Adapters layer - Calendar providers and storage backends.
"""

from .factory import build_calendar_clients, get_calendar_client
from .google_client import GoogleCalendarClient
from .graph_client import GraphCalendarClient
from .memory_store import InMemoryBookingStore, InMemoryScheduleStore
from .mock_calendar_client import MockCalendarClient

__all__ = [
    "GoogleCalendarClient",
    "GraphCalendarClient",
    "InMemoryBookingStore",
    "InMemoryScheduleStore",
    "MockCalendarClient",
    "build_calendar_clients",
    "get_calendar_client",
]
