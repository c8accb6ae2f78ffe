"""
Domain-specific exception hierarchy for the slot engine.
"""


class SlotEngineError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(SlotEngineError, ValueError):
    """Raised when rules, overrides or generation parameters are malformed."""


class InvalidTimezoneError(ConfigurationError):
    """Raised when a timezone identifier does not resolve."""

    def __init__(self, name: str):
        super().__init__(f"Invalid timezone: '{name}'")
        self.name = name


class InvalidRangeError(SlotEngineError, ValueError):
    """Raised when a requested date range is reversed or too large."""


class ScheduleNotFoundError(SlotEngineError, LookupError):
    """Raised when a schedule store has no schedule for an identifier."""


class CalendarAPIError(SlotEngineError):
    """Raised when calendar data cannot be fetched or parsed."""
