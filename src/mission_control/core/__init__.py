"""Functional core - pure business logic with no I/O."""

from .activity import Activity, ActivityTypes, InputError
from .calendar import CalendarItem, sort_items_by_start
from .mail import EmailMessage
from .schedule import (
    CronSchedule,
    CronParseError,
    LocalTask,
    NormalizedScheduleEntry,
    RawJobDescriptor,
    normalize_job,
    normalize_local_task,
)
from .search import NoteDocument, Query, SearchRecord, score_relevance, search
from .timeline import DayBucket, UpcomingItem, bucket_by_day, upcoming, week_days

__all__ = [
    # Activity
    "Activity",
    "ActivityTypes",
    "InputError",
    # Calendar
    "CalendarItem",
    "sort_items_by_start",
    # Mail
    "EmailMessage",
    # Schedule
    "CronSchedule",
    "CronParseError",
    "LocalTask",
    "NormalizedScheduleEntry",
    "RawJobDescriptor",
    "normalize_job",
    "normalize_local_task",
    # Search
    "NoteDocument",
    "Query",
    "SearchRecord",
    "score_relevance",
    "search",
    # Timeline
    "DayBucket",
    "UpcomingItem",
    "bucket_by_day",
    "upcoming",
    "week_days",
]
