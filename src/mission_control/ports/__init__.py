"""Ports - interfaces/protocols for external dependencies."""

from .job_source import JobSource
from .calendar_repo import CalendarRepository
from .note_corpus import NoteCorpus
from .event_log import EventLog, Storage, TaskStore
from .mailbox import Mailbox

__all__ = [
    "JobSource",
    "CalendarRepository",
    "NoteCorpus",
    "EventLog",
    "TaskStore",
    "Storage",
    "Mailbox",
]
