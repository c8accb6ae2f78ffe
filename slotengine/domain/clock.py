"""
Injectable clock for "now", used for minimum notice and horizon cutoffs.
"""

from typing import Protocol

import pendulum
from pendulum import DateTime


class Clock(Protocol):
    """Anything that can tell the current instant."""

    def now(self) -> DateTime:
        """Return the current instant."""


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> DateTime:
        return pendulum.now("UTC")


class FixedClock:
    """A clock frozen at a given instant, for deterministic generation."""

    def __init__(self, instant: DateTime):
        self._instant = instant

    def now(self) -> DateTime:
        return self._instant
