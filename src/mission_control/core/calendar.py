"""Pure calendar domain logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class CalendarItem:
    """A calendar event snapshot."""

    id: str
    title: str
    description: str
    start: datetime | None
    end: datetime | None
    is_all_day: bool
    location: str
    creator: str = ""

    def local_date(self, tz) -> date | None:
        """Calendar date of the event start in the given zone."""
        if self.start is None:
            return None
        if self.is_all_day:
            return self.start.date()
        return self.start.astimezone(tz).date()

    def _format(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        if self.is_all_day:
            return value.date().isoformat()
        return value.isoformat()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "start": self._format(self.start),
            "end": self._format(self.end),
            "location": self.location,
            "creator": self.creator,
            "isAllDay": self.is_all_day,
        }


def sort_items_by_start(items: list[CalendarItem]) -> list[CalendarItem]:
    """Sort items ascending by start. Items without a start go last."""
    return sorted(items, key=lambda i: (i.start is None, i.start.timestamp() if i.start else 0.0))
