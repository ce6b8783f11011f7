"""Aggregation layer shared by every consumer-facing view.

Fans out to the source adapters, tolerates partial failure and assembles the
merged schedule, calendar, overview, search and mail payloads.
"""

import importlib
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable
from zoneinfo import ZoneInfo

from .adapters import CronJobAdapter, FileNoteCorpus, GmailAdapter, GogCalendarAdapter, SqliteStore
from .config import Config
from .core.activity import (
    DEFAULT_PAGE_SIZE,
    Activity,
    InputError,
    validate_activity,
    validate_page,
)
from .core.calendar import CalendarItem, sort_items_by_start
from .core.mail import DEFAULT_MAIL_QUERY, EmailMessage
from .core.schedule import (
    CRON,
    INTERVAL,
    CronSchedule,
    CronParseError,
    NormalizedScheduleEntry,
    RawJobDescriptor,
    normalize_job,
    normalize_local_task,
    parse_interval_ms,
)
from .core.search import Query, SearchRecord
from .core.timeline import DayBucket, UpcomingItem, bucket_by_day, forward_days, upcoming, week_days
from .ports import CalendarRepository, JobSource, Mailbox, NoteCorpus, Storage

# core/__init__ re-exports the search() function under the submodule's name.
search_core = importlib.import_module(".core.search", __package__)

logger = logging.getLogger(__name__)

SourceCall = Callable[[], tuple[list, bool]]


@dataclass
class ScheduleView:
    tasks: list[NormalizedScheduleEntry]
    sources_ok: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"tasks": [t.to_dict() for t in self.tasks]}


@dataclass
class CalendarView:
    events: list[CalendarItem]
    sources_ok: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"events": [e.to_dict() for e in self.events]}


@dataclass
class MailView:
    emails: list[EmailMessage]
    sources_ok: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"emails": [m.to_dict() for m in self.emails]}


@dataclass
class SearchView:
    results: list[SearchRecord]

    def to_dict(self) -> dict:
        return {"results": [r.to_dict() for r in self.results]}


@dataclass
class Overview:
    """Day buckets plus the flattened upcoming projection."""

    days: list[DayBucket]
    upcoming: list[UpcomingItem]
    sources_ok: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "days": [d.to_dict() for d in self.days],
            "upcoming": [u.to_dict() for u in self.upcoming],
        }


class MissionControl:
    """
    Aggregation orchestrator.

    Holds the adapters and the storage handle for the process lifetime; every
    call builds its own source snapshots.
    """

    def __init__(
        self,
        jobs: JobSource,
        calendar: CalendarRepository,
        notes: NoteCorpus,
        store: Storage,
        config: Config | None = None,
        mailbox: Mailbox | None = None,
    ):
        self.jobs = jobs
        self.calendar_source = calendar
        self.notes = notes
        self.store = store
        self.mailbox = mailbox
        self.config = config or Config()
        self.tz = ZoneInfo(self.config.timezone)

    @classmethod
    def from_config(cls, config: Config, store: Storage | None = None) -> "MissionControl":
        """Wire the default adapters from configuration."""
        return cls(
            jobs=CronJobAdapter(binary=config.cron_binary, timeout=config.source_timeout),
            calendar=GogCalendarAdapter(
                calendar_id=config.calendar_id,
                account=config.calendar_account,
                timezone=config.timezone,
                binary=config.calendar_binary,
                timeout=config.source_timeout,
            ),
            notes=FileNoteCorpus(config.notes_path(), config.main_note_path()),
            store=store or SqliteStore(config.database_file()),
            config=config,
            mailbox=GmailAdapter(
                account=config.mail_account or config.calendar_account,
                binary=config.calendar_binary,
                timeout=config.source_timeout,
            ),
        )

    def _now(self, now: datetime | None) -> datetime:
        if now is None:
            return datetime.now(self.tz)
        if now.tzinfo is None:
            return now.replace(tzinfo=self.tz)
        return now

    # ============== Fan-out ==============

    def _guarded(self, name: str, call: SourceCall) -> tuple[list, bool]:
        try:
            return call()
        except Exception:
            logger.exception(f"Source {name} failed")
            return [], False

    def _gather(self, calls: dict[str, SourceCall]) -> dict[str, tuple[list, bool]]:
        """Run every source call concurrently and wait for all of them."""
        with ThreadPoolExecutor(max_workers=len(calls)) as pool:
            futures = {name: pool.submit(self._guarded, name, call) for name, call in calls.items()}
            results = {name: future.result() for name, future in futures.items()}

        for name, (_, ok) in results.items():
            if not ok:
                logger.warning(f"Source {name} unavailable, continuing without it")
        return results

    def _local_tasks(self) -> tuple[list, bool]:
        return self.store.scheduled_tasks(), True

    def _normalize(self, jobs: list[RawJobDescriptor], local_tasks: list, now: datetime) -> list[NormalizedScheduleEntry]:
        """External entries first, then local ones."""
        entries = [normalize_job(job, now, self.config.timezone) for job in jobs]
        entries.extend(normalize_local_task(task, now, self.config.timezone) for task in local_tasks)
        return entries

    # ============== Views ==============

    def schedule(self, now: datetime | None = None) -> ScheduleView:
        """Merged external and local scheduled tasks."""
        now = self._now(now)
        results = self._gather({"jobs": self.jobs.fetch_jobs, "local": self._local_tasks})
        jobs, _ = results["jobs"]
        local, _ = results["local"]
        return ScheduleView(
            tasks=self._normalize(jobs, local, now),
            sources_ok={name: ok for name, (_, ok) in results.items()},
        )

    def calendar(self, days: int = 7, start: date | None = None) -> CalendarView:
        """Calendar events from `start` (default today), ascending by start."""
        if days <= 0:
            raise InputError(f"days must be positive, got {days}")
        start = start or datetime.now(self.tz).date()
        events, ok = self._guarded("calendar", lambda: self.calendar_source.fetch_events(start=start, days=days))
        return CalendarView(events=sort_items_by_start(events), sources_ok={"calendar": ok})

    def overview(
        self,
        days: int | None = None,
        anchor: date | None = None,
        now: datetime | None = None,
    ) -> Overview:
        """
        Bucketed view of jobs and events.

        Without `days` this is the Monday-start week containing `anchor`;
        with `days` it is a forward window starting at `anchor`.
        """
        now = self._now(now)
        anchor = anchor or now.astimezone(self.tz).date()
        if days is None:
            day_list = week_days(anchor)
        elif days > 0:
            day_list = forward_days(anchor, days)
        else:
            raise InputError(f"days must be positive, got {days}")

        results = self._gather(
            {
                "jobs": self.jobs.fetch_jobs,
                "local": self._local_tasks,
                "calendar": lambda: self.calendar_source.fetch_events(
                    start=day_list[0], days=len(day_list) - 1
                ),
            }
        )
        entries = self._normalize(results["jobs"][0], results["local"][0], now)
        events = sort_items_by_start(results["calendar"][0])

        return Overview(
            days=bucket_by_day(entries, events, day_list, self.tz, per_kind=self.config.bucket_items_per_kind),
            upcoming=upcoming(entries, events, now, limit=self.config.upcoming_limit),
            sources_ok={name: ok for name, (_, ok) in results.items()},
        )

    # ============== Search ==============

    def _activity_records(self, query: Query) -> list[SearchRecord]:
        activities, _ = self._guarded(
            "activities", lambda: (self.store.find(query.normalized, limit=self.config.search_limit), True)
        )
        return [search_core.record_from_activity(query, a) for a in activities]

    def _note_records(self, query: Query) -> list[SearchRecord]:
        documents, _ = self._guarded("notes", self.notes.list_documents)
        return search_core.records_from_documents(query, documents)

    def _main_note_records(self, query: Query) -> list[SearchRecord]:
        document, _ = self._guarded("main note", self.notes.read_main)
        if not document:
            return []
        return search_core.records_from_documents(query, [document])

    def search(self, raw_query: str | None) -> SearchView:
        """Ranked results across the event log and the note corpus."""
        query = Query.parse(raw_query)
        results = search_core.search(
            query,
            [self._activity_records, self._note_records, self._main_note_records],
            limit=self.config.search_limit,
        )
        return SearchView(results=results)

    # ============== Mail ==============

    def mail(self, query: str | None = None, limit: int | None = None) -> MailView:
        """Mailbox messages matching a provider query (default: unread)."""
        limit = self.config.mail_limit if limit is None else limit
        if limit <= 0:
            raise InputError(f"limit must be positive, got {limit}")
        if self.mailbox is None:
            return MailView(emails=[], sources_ok={"mail": False})

        messages, ok = self._guarded(
            "mail", lambda: self.mailbox.search_messages(query or DEFAULT_MAIL_QUERY, limit=limit)
        )
        return MailView(emails=messages, sources_ok={"mail": ok})

    # ============== Write paths ==============

    def log_activity(
        self,
        activity_type: str | None,
        title: str | None,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Append to the event log. Raises InputError before touching the store."""
        activity_type, title = validate_activity(activity_type, title)
        return self.store.append(activity_type, title, description, metadata)

    def activities(
        self,
        filter_type: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[Activity]:
        validate_page(limit, offset)
        return self.store.query(filter_type, limit, offset)

    def add_local_task(
        self,
        name: str | None,
        schedule_type: str | None,
        schedule_expr: str | None,
        job_id: str | None = None,
        now: datetime | None = None,
    ) -> int:
        """Persist a local cron or interval task with its computed next run."""
        name = (name or "").strip()
        schedule_type = (schedule_type or "").strip().lower()
        schedule_expr = (schedule_expr or "").strip()
        if not name:
            raise InputError("Task name is required")
        if schedule_type not in (CRON, INTERVAL):
            raise InputError(f"Schedule type must be '{CRON}' or '{INTERVAL}', got {schedule_type!r}")

        if schedule_type == CRON:
            try:
                CronSchedule.parse(schedule_expr)
            except CronParseError as e:
                raise InputError(str(e)) from e
        elif not parse_interval_ms(schedule_expr):
            raise InputError(f"Interval must be a positive number of milliseconds, got {schedule_expr!r}")

        job = RawJobDescriptor(
            id="",
            name=name,
            schedule_kind=schedule_type,
            expr=schedule_expr if schedule_type == CRON else None,
            interval_ms=parse_interval_ms(schedule_expr) if schedule_type == INTERVAL else None,
        )
        entry = normalize_job(job, self._now(now), self.config.timezone)
        next_run = entry.next_run_at.isoformat() if entry.next_run_at else None
        return self.store.add_scheduled_task(name, schedule_type, schedule_expr, job_id=job_id, next_run_at=next_run)
