"""gog adapter - subprocess wrapper for Google Calendar."""

import logging
import os
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from mission_control.core.calendar import CalendarItem, sort_items_by_start

from .process import DEFAULT_TIMEOUT, run_json, sanitize_arg

logger = logging.getLogger(__name__)


class GogCalendarAdapter:
    """
    gog subprocess adapter.

    Implements CalendarRepository protocol. Fetches events via
    `gog calendar events ... --json` for an explicit from/to range.
    """

    def __init__(
        self,
        calendar_id: str = "",
        account: str = "",
        timezone: str = "UTC",
        binary: str = "gog",
        timeout: int | float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the gog adapter.

        Args:
            calendar_id: Calendar to read. Defaults to the account's calendar.
            account: Google account passed as --account and GOG_ACCOUNT.
            timezone: Zone used for the day window and for all-day events.
            binary: Name or path of the gog executable.
            timeout: Command timeout in seconds.
        """
        self.account = sanitize_arg(account)
        self.calendar_id = sanitize_arg(calendar_id) or self.account or "primary"
        self.tz = ZoneInfo(timezone)
        self.binary = binary
        self.timeout = timeout

    def _window(self, start: date, days: int) -> tuple[str, str]:
        """Start of `start` through end of day `start + days`, local time."""
        window_start = datetime.combine(start, time.min, tzinfo=self.tz)
        window_end = datetime.combine(start + timedelta(days=days), time(23, 59, 59), tzinfo=self.tz)
        return window_start.isoformat(timespec="seconds"), window_end.isoformat(timespec="seconds")

    def build_command(self, start: date, days: int) -> list[str]:
        frm, to = self._window(start, days)
        cmd = [
            self.binary,
            "calendar",
            "events",
            self.calendar_id,
            "--from",
            sanitize_arg(frm),
            "--to",
            sanitize_arg(to),
        ]
        if self.account:
            cmd.extend(["--account", self.account])
        cmd.append("--json")
        return cmd

    def fetch_events(
        self,
        start: date | None = None,
        days: int = 7,
        limit: int | None = None,
    ) -> tuple[list[CalendarItem], bool]:
        """Fetch events from `start` (default today) through `start + days`."""
        start = start or datetime.now(self.tz).date()
        env = dict(os.environ)
        if self.account:
            env["GOG_ACCOUNT"] = self.account

        data, ok = run_json(self.build_command(start, days), timeout=self.timeout, env=env)
        if not ok:
            return [], False

        # gog returns { events: [...] } rather than a bare list
        if isinstance(data, dict):
            data = data.get("events")
        if not isinstance(data, list):
            logger.warning(f"Unexpected {self.binary} output format: {type(data).__name__}")
            return [], False

        items = sort_items_by_start(self._parse_events(data))
        if limit is not None:
            items = items[:limit]
        return items, True

    def _parse_events(self, data: list) -> list[CalendarItem]:
        items = []
        for event in data:
            try:
                items.append(self._parse_event(event))
            except (AttributeError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed event: {e}")
                continue
        return items

    def _parse_instant(self, value: dict | None) -> tuple[datetime | None, bool]:
        """Parse a {dateTime} or {date} object. Returns (instant, is_all_day)."""
        value = value or {}
        if value.get("dateTime"):
            parsed = datetime.fromisoformat(value["dateTime"])
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=self.tz)
            return parsed, False
        if value.get("date"):
            day = date.fromisoformat(value["date"])
            return datetime.combine(day, time.min, tzinfo=self.tz), True
        return None, False

    def _parse_event(self, event: dict) -> CalendarItem:
        """Parse a single event from gog JSON."""
        start, start_all_day = self._parse_instant(event.get("start"))
        end, _ = self._parse_instant(event.get("end"))
        creator = event.get("creator") or {}

        return CalendarItem(
            id=str(event.get("id", "")),
            title=event.get("summary") or "Untitled Event",
            description=event.get("description") or "",
            start=start,
            end=end,
            is_all_day=start_all_day or not (event.get("start") or {}).get("dateTime"),
            location=event.get("location") or "",
            creator=creator.get("displayName") or creator.get("email") or "",
        )
