"""Calendar repository interface."""

from datetime import date
from typing import Protocol

from mission_control.core.calendar import CalendarItem


class CalendarRepository(Protocol):
    """Interface for fetching calendar events from any backend."""

    def fetch_events(
        self,
        start: date | None = None,
        days: int = 7,
        limit: int | None = None,
    ) -> tuple[list[CalendarItem], bool]:
        """Fetch events from `start` through `start + days`. Returns (events, ok)."""
        ...
