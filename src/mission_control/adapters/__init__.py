"""Adapters - I/O implementations of ports."""

from .activity_client import ActivityClient
from .file_notes import FileNoteCorpus
from .gog_calendar import GogCalendarAdapter
from .gog_gmail import GmailAdapter
from .openclaw_cron import CronJobAdapter
from .process import sanitize_arg
from .sqlite_store import SqliteStore

__all__ = [
    "ActivityClient",
    "FileNoteCorpus",
    "GogCalendarAdapter",
    "GmailAdapter",
    "CronJobAdapter",
    "SqliteStore",
    "sanitize_arg",
]
