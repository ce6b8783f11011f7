"""Pure temporal merge and day-bucketing logic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Union

from .calendar import CalendarItem
from .schedule import NormalizedScheduleEntry

DEFAULT_ITEMS_PER_KIND = 2
DEFAULT_UPCOMING_LIMIT = 5

TimelineItem = Union[NormalizedScheduleEntry, CalendarItem]


@dataclass
class DayBucket:
    """Schedule entries and calendar items falling on one local date."""

    date: date
    schedule_entries: list[NormalizedScheduleEntry] = field(default_factory=list)
    calendar_items: list[CalendarItem] = field(default_factory=list)
    overflow_count: int = 0

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "tasks": [e.to_dict() for e in self.schedule_entries],
            "events": [i.to_dict() for i in self.calendar_items],
            "more": self.overflow_count,
        }


@dataclass(frozen=True)
class UpcomingItem:
    """One entry of the flattened "upcoming" projection."""

    at: datetime
    kind: str
    item: TimelineItem

    @property
    def title(self) -> str:
        if isinstance(self.item, CalendarItem):
            return self.item.title
        return self.item.name

    def to_dict(self) -> dict:
        return {"at": self.at.isoformat(), "kind": self.kind, **self.item.to_dict()}


def effective_instant(item: TimelineItem) -> datetime | None:
    """The instant an item is placed at: next run for jobs, start for events."""
    if isinstance(item, CalendarItem):
        return item.start
    return item.next_run_at


def week_days(anchor: date, week_starts_on: int = 0) -> list[date]:
    """The 7 dates of the week containing `anchor` (0 = Monday start)."""
    offset = (anchor.weekday() - week_starts_on) % 7
    start = anchor - timedelta(days=offset)
    return forward_days(start, 7)


def forward_days(start: date, count: int) -> list[date]:
    """`count` consecutive dates beginning at `start`."""
    return [start + timedelta(days=i) for i in range(count)]


def _local_date(item: TimelineItem, tz) -> date | None:
    if isinstance(item, CalendarItem):
        return item.local_date(tz)
    if item.next_run_at is None:
        return None
    return item.next_run_at.astimezone(tz).date()


def _group_by_date(items: list, tz, wanted: set[date]) -> dict[date, list]:
    grouped: dict[date, list] = {}
    for item in items:
        day = _local_date(item, tz)
        if day is None or day not in wanted:
            continue
        grouped.setdefault(day, []).append(item)
    for day_items in grouped.values():
        day_items.sort(key=lambda i: effective_instant(i).timestamp())
    return grouped


def bucket_by_day(
    entries: list[NormalizedScheduleEntry],
    items: list[CalendarItem],
    days: list[date],
    tz,
    per_kind: int = DEFAULT_ITEMS_PER_KIND,
) -> list[DayBucket]:
    """
    Group entries and calendar items into one bucket per requested day.

    Pure function - no I/O. Each kind is ordered by instant and capped at
    `per_kind`; the rest is reported as overflow_count. Items with no
    resolvable instant are left out.
    """
    wanted = set(days)
    entries_by_day = _group_by_date(entries, tz, wanted)
    items_by_day = _group_by_date(items, tz, wanted)

    buckets = []
    for day in days:
        day_entries = entries_by_day.get(day, [])
        day_items = items_by_day.get(day, [])
        shown_entries = day_entries[:per_kind]
        shown_items = day_items[:per_kind]
        buckets.append(
            DayBucket(
                date=day,
                schedule_entries=shown_entries,
                calendar_items=shown_items,
                overflow_count=len(day_entries) + len(day_items) - len(shown_entries) - len(shown_items),
            )
        )
    return buckets


def upcoming(
    entries: list[NormalizedScheduleEntry],
    items: list[CalendarItem],
    now: datetime,
    limit: int = DEFAULT_UPCOMING_LIMIT,
) -> list[UpcomingItem]:
    """
    Future entries and events, soonest first, truncated to `limit`.

    Ties keep input order: schedule entries before calendar items.
    """
    merged: list[UpcomingItem] = []
    for kind, source in (("task", entries), ("event", items)):
        for item in source:
            at = effective_instant(item)
            if at is not None and at > now:
                merged.append(UpcomingItem(at=at, kind=kind, item=item))

    merged.sort(key=lambda u: u.at.timestamp())
    return merged[:limit]
