"""Pure schedule normalization logic - no I/O dependencies.

Reduces recurring job descriptors (5-field cron expressions or fixed
intervals) to a single comparable next-execution instant.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import CroniterBadDateError, croniter

CRON = "cron"
INTERVAL = "interval"

ACTIVE = "active"
DISABLED = "disabled"

EXTERNAL_SOURCE = "openclaw"
LOCAL_SOURCE = "local"

DEFAULT_TASK_NAME = "Scheduled Task"

# Long enough to reach the next Feb 29 across a skipped leap year (e.g. 2100)
SEARCH_HORIZON_YEARS = 8


class CronParseError(ValueError):
    """Raised when a cron expression cannot be parsed."""

    pass


@dataclass(frozen=True)
class RawJobDescriptor:
    """A recurring job as reported by the external scheduler."""

    id: str
    name: str
    schedule_kind: str
    expr: str | None = None
    interval_ms: int | None = None
    timezone: str | None = None
    enabled: bool = True
    payload_summary: str = ""


@dataclass(frozen=True)
class LocalTask:
    """A scheduled task row persisted in the local store."""

    id: int
    job_id: str | None
    name: str | None
    schedule_type: str | None
    schedule_expr: str | None
    next_run_at: str | None
    last_run_at: str | None
    status: str
    created_at: str


@dataclass(frozen=True)
class NormalizedScheduleEntry:
    """A job reduced to one comparable next-execution instant."""

    id: str
    name: str
    kind: str
    schedule_expr: str
    next_run_at: datetime | None
    source: str
    status: str

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "scheduleType": self.kind,
            "scheduleExpr": self.schedule_expr,
            "status": self.status,
            "source": self.source,
        }
        if self.next_run_at is not None:
            data["nextRunAt"] = self.next_run_at.isoformat()
        return data


# Longest clock change to look ahead for when revisiting a repeated hour
_FALL_BACK_LOOKAHEAD = timedelta(hours=3)


@dataclass(frozen=True)
class CronSchedule:
    """A validated standard 5-field cron expression."""

    expr: str
    # Minute or hour field is a wildcard; such jobs keep real time through a fall-back
    wildcard_time: bool

    @classmethod
    def parse(cls, expr: str) -> "CronSchedule":
        """
        Validate "minute hour day-of-month month day-of-week".

        Field syntax is croniter's: *, numbers, a-b ranges, comma lists, /step,
        month and weekday names, and 0 or 7 for Sunday.

        Raises:
            CronParseError: If the expression is not a valid 5-field cron.
        """
        fields = (expr or "").split()
        if len(fields) != 5:
            raise CronParseError(f"Expected 5 fields, got {len(fields)}: {expr!r}")

        normalized = " ".join(fields)
        try:
            croniter(normalized)
        except ValueError as e:
            # CroniterError subclasses ValueError
            raise CronParseError(f"Invalid cron expression {expr!r}: {e}") from e

        return cls(
            expr=normalized,
            wildcard_time=fields[0].startswith("*") or fields[1].startswith("*"),
        )

    def _instants(self, wall: datetime, tz: ZoneInfo) -> list[datetime]:
        """UTC instants at which a wall-clock match fires. Empty inside a DST gap."""
        first = wall.replace(tzinfo=tz).astimezone(timezone.utc)
        if first.astimezone(tz).replace(tzinfo=None) != wall:
            return []

        second = wall.replace(tzinfo=tz, fold=1).astimezone(timezone.utc)
        if second != first and self.wildcard_time:
            return [first, second]
        return [first]

    def next_after(self, now: datetime, tz: ZoneInfo) -> datetime | None:
        """
        Find the first instant strictly after `now` matching this expression.

        Matching happens on the wall clock of `tz`. Wall-clock times skipped by
        a DST transition never fire. In the hour repeated by a fall-back,
        fixed-time jobs fire once at the first occurrence while jobs with a
        wildcard minute or hour keep firing on real time. Returns None if
        nothing matches within the horizon.
        """
        now_utc = now.astimezone(timezone.utc)
        local = now_utc.astimezone(tz)

        # Before a fall-back, the repeated wall times lie behind the local clock
        later = (now_utc + _FALL_BACK_LOOKAHEAD).astimezone(tz)
        rewind = max(local.utcoffset() - later.utcoffset(), timedelta(0))
        start = local.replace(tzinfo=None, second=0, microsecond=0) - rewind

        walls = croniter(self.expr, start, max_years_between_matches=SEARCH_HORIZON_YEARS)
        best = None
        while True:
            try:
                wall = walls.get_next(datetime)
            except CroniterBadDateError:
                break

            instants = self._instants(wall, tz)
            if not instants:
                continue
            # Later wall times never map to an earlier instant than this one
            if best is not None and instants[0] >= best:
                break
            for instant in instants:
                if instant > now_utc and (best is None or instant < best):
                    best = instant

        return best.astimezone(tz) if best is not None else None


def resolve_timezone(name: str | None, default: str) -> ZoneInfo | None:
    """Look up a named zone, falling back to the default. None if unknown."""
    try:
        return ZoneInfo(name or default)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def next_cron_run(expr: str, now: datetime, tz: ZoneInfo) -> datetime | None:
    """Next run of a cron expression, or None if unparsable or never matching."""
    try:
        cron = CronSchedule.parse(expr)
    except CronParseError:
        return None
    return cron.next_after(now, tz)


def next_interval_run(interval_ms: int | None, now: datetime) -> datetime | None:
    """Next run of a fixed-interval job: exactly `now + interval_ms`."""
    if interval_ms is None or interval_ms <= 0:
        return None
    return now + timedelta(milliseconds=interval_ms)


def _schedule_expr(job: RawJobDescriptor) -> str:
    if job.schedule_kind == INTERVAL:
        return f"{job.interval_ms}ms"
    return job.expr or ""


def normalize_job(
    job: RawJobDescriptor,
    now: datetime,
    default_tz: str,
    source: str = EXTERNAL_SOURCE,
) -> NormalizedScheduleEntry:
    """
    Reduce a job descriptor to a normalized schedule entry.

    Pure function - no I/O. An unparsable schedule leaves next_run_at as None
    and keeps every other field.
    """
    next_run = None
    if job.schedule_kind == INTERVAL:
        next_run = next_interval_run(job.interval_ms, now)
    elif job.schedule_kind == CRON and job.expr:
        tz = resolve_timezone(job.timezone, default_tz)
        if tz is not None:
            next_run = next_cron_run(job.expr, now, tz)

    return NormalizedScheduleEntry(
        id=job.id,
        name=job.name or job.payload_summary or DEFAULT_TASK_NAME,
        kind=job.schedule_kind,
        schedule_expr=_schedule_expr(job),
        next_run_at=next_run,
        source=source,
        status=ACTIVE if job.enabled else DISABLED,
    )


def parse_interval_ms(value: str | int | float | None) -> int | None:
    """Parse "3600000", "3600000ms" or a number into whole milliseconds."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if float(value).is_integer() else None
    text = value.strip().removesuffix("ms").strip()
    return int(text) if text.isdigit() else None


def parse_stored_instant(value: str | None) -> datetime | None:
    """Parse a stored timestamp. Naive values are UTC (sqlite CURRENT_TIMESTAMP)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_local_task(task: LocalTask, now: datetime, default_tz: str) -> NormalizedScheduleEntry:
    """
    Normalize a locally persisted task.

    Cron and interval rows are recomputed like external jobs. Any other row
    keeps its stored next_run_at, but only while it is still in the future.
    """
    kind = (task.schedule_type or "").lower()
    if kind == "every":
        kind = INTERVAL

    if kind in (CRON, INTERVAL):
        job = RawJobDescriptor(
            id=str(task.id),
            name=task.name or "",
            schedule_kind=kind,
            expr=task.schedule_expr if kind == CRON else None,
            interval_ms=parse_interval_ms(task.schedule_expr) if kind == INTERVAL else None,
            enabled=task.status != DISABLED,
        )
        entry = normalize_job(job, now, default_tz, source=LOCAL_SOURCE)
        return NormalizedScheduleEntry(
            id=entry.id,
            name=entry.name,
            kind=entry.kind,
            schedule_expr=task.schedule_expr or "",
            next_run_at=entry.next_run_at,
            source=LOCAL_SOURCE,
            status=task.status,
        )

    stored = parse_stored_instant(task.next_run_at)
    if stored is not None and stored <= now:
        stored = None

    return NormalizedScheduleEntry(
        id=str(task.id),
        name=task.name or DEFAULT_TASK_NAME,
        kind=task.schedule_type or "",
        schedule_expr=task.schedule_expr or "",
        next_run_at=stored,
        source=LOCAL_SOURCE,
        status=task.status,
    )
