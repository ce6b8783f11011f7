"""openclaw adapter - subprocess wrapper for the external cron scheduler."""

import logging

from mission_control.core.schedule import CRON, INTERVAL, RawJobDescriptor, parse_interval_ms

from .process import DEFAULT_TIMEOUT, run_json

logger = logging.getLogger(__name__)

_KIND_ALIASES = {"cron": CRON, "every": INTERVAL, "interval": INTERVAL}


class CronJobAdapter:
    """
    openclaw subprocess adapter.

    Implements JobSource protocol. Lists recurring jobs via
    `openclaw cron list --json`.
    """

    def __init__(self, binary: str = "openclaw", timeout: int | float = DEFAULT_TIMEOUT):
        self.binary = binary
        self.timeout = timeout

    def fetch_jobs(self, limit: int | None = None) -> tuple[list[RawJobDescriptor], bool]:
        """Fetch job descriptors. Returns (jobs, ok); never raises."""
        data, ok = run_json([self.binary, "cron", "list", "--json"], timeout=self.timeout)
        if not ok:
            return [], False

        if isinstance(data, dict):
            data = data.get("jobs")
        if not isinstance(data, list):
            logger.warning(f"Unexpected {self.binary} cron output format: {type(data).__name__}")
            return [], False

        jobs = self._parse_jobs(data)
        if limit is not None:
            jobs = jobs[:limit]
        return jobs, True

    def _parse_jobs(self, data: list) -> list[RawJobDescriptor]:
        jobs = []
        for item in data:
            try:
                job = self._parse_job(item)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed cron job: {e}")
                continue
            jobs.append(job)
        return jobs

    def _parse_job(self, item: dict) -> RawJobDescriptor:
        """Parse a single job from openclaw JSON."""
        job_id = item.get("jobId") or item.get("id")
        if not job_id:
            raise KeyError("jobId")

        schedule = item.get("schedule") or {}
        raw_kind = str(schedule.get("kind", ""))
        kind = _KIND_ALIASES.get(raw_kind.lower(), raw_kind)
        payload = item.get("payload") or {}

        return RawJobDescriptor(
            id=str(job_id),
            name=item.get("name") or "",
            schedule_kind=kind,
            expr=schedule.get("expr"),
            interval_ms=parse_interval_ms(schedule.get("everyMs")),
            timezone=schedule.get("tz"),
            enabled=bool(item.get("enabled", True)),
            payload_summary=payload.get("text") or payload.get("message") or "",
        )
