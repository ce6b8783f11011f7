"""Tests for schedule normalization."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from mission_control.core.schedule import (
    CronSchedule,
    CronParseError,
    LocalTask,
    RawJobDescriptor,
    next_cron_run,
    normalize_job,
    normalize_local_task,
    parse_interval_ms,
)

LONDON = ZoneInfo("Europe/London")
NEW_YORK = ZoneInfo("America/New_York")


@pytest.fixture
def wednesday_morning():
    # 2025-01-15 is a Wednesday
    return datetime(2025, 1, 15, 10, 0, tzinfo=LONDON)


def make_job(**overrides) -> RawJobDescriptor:
    fields = dict(id="job-1", name="Backup", schedule_kind="cron", expr="0 9 * * *")
    fields.update(overrides)
    return RawJobDescriptor(**fields)


def make_task(**overrides) -> LocalTask:
    fields = dict(
        id=1,
        job_id=None,
        name="Local",
        schedule_type="cron",
        schedule_expr="0 9 * * *",
        next_run_at=None,
        last_run_at=None,
        status="active",
        created_at="2025-01-01 00:00:00",
    )
    fields.update(overrides)
    return LocalTask(**fields)


class TestCronParse:
    def test_normalizes_whitespace(self):
        assert CronSchedule.parse("  0  9 * * 1 ").expr == "0 9 * * 1"

    @pytest.mark.parametrize(
        "expr, wildcard_time",
        [("* * * * *", True), ("*/15 1 * * *", True), ("30 */2 * * *", True), ("30 1 * * *", False), ("0,30 9-17 * * 1-5", False)],
    )
    def test_wildcard_time(self, expr, wildcard_time):
        assert CronSchedule.parse(expr).wildcard_time is wildcard_time

    @pytest.mark.parametrize("expr", ["0,30 9-17/4 1-3 */6 1-5", "0 9 * jan-mar mon,fri", "0 0 * * 7"])
    def test_valid_expressions(self, expr):
        assert CronSchedule.parse(expr).expr == expr

    @pytest.mark.parametrize(
        "expr",
        [
            "* * * *",
            "* * * * * *",
            "@daily",
            "60 * * * *",
            "* 24 * * *",
            "* * 0 * *",
            "* * * 13 *",
            "a b c d e",
            "",
            None,
        ],
    )
    def test_invalid_expressions(self, expr):
        with pytest.raises(CronParseError):
            CronSchedule.parse(expr)


class TestNextCronRun:
    def test_next_monday_from_wednesday(self, wednesday_morning):
        result = next_cron_run("0 9 * * 1", wednesday_morning, LONDON)
        assert result == datetime(2025, 1, 20, 9, 0, tzinfo=LONDON)
        assert result.weekday() == 0

    def test_exact_match_advances_to_following_occurrence(self):
        now = datetime(2025, 1, 20, 9, 0, tzinfo=LONDON)
        result = next_cron_run("0 9 * * 1", now, LONDON)
        assert result == datetime(2025, 1, 27, 9, 0, tzinfo=LONDON)

    def test_seconds_past_match_still_advances(self):
        now = datetime(2025, 1, 15, 10, 15, 30, tzinfo=LONDON)
        result = next_cron_run("*/15 * * * *", now, LONDON)
        assert result == datetime(2025, 1, 15, 10, 30, tzinfo=LONDON)

    def test_later_today(self, wednesday_morning):
        result = next_cron_run("30 14 * * *", wednesday_morning, LONDON)
        assert result == datetime(2025, 1, 15, 14, 30, tzinfo=LONDON)

    def test_rolls_over_month_end(self):
        now = datetime(2025, 4, 30, 23, 59, tzinfo=LONDON)
        result = next_cron_run("0 0 31 * *", now, LONDON)
        assert result == datetime(2025, 5, 31, 0, 0, tzinfo=LONDON)

    def test_rolls_over_year_end(self):
        now = datetime(2025, 12, 31, 23, 30, tzinfo=LONDON)
        result = next_cron_run("0 0 1 1 *", now, LONDON)
        assert result == datetime(2026, 1, 1, 0, 0, tzinfo=LONDON)

    def test_leap_day(self):
        now = datetime(2025, 3, 1, 0, 0, tzinfo=LONDON)
        result = next_cron_run("0 0 29 2 *", now, LONDON)
        assert result == datetime(2028, 2, 29, 0, 0, tzinfo=LONDON)

    def test_impossible_date_returns_none(self, wednesday_morning):
        assert next_cron_run("0 0 31 2 *", wednesday_morning, LONDON) is None

    def test_unparsable_returns_none(self, wednesday_morning):
        assert next_cron_run("every monday", wednesday_morning, LONDON) is None

    def test_sunday_as_seven(self, wednesday_morning):
        result = next_cron_run("0 9 * * 7", wednesday_morning, LONDON)
        assert result == datetime(2025, 1, 19, 9, 0, tzinfo=LONDON)

    def test_day_of_month_or_day_of_week(self, wednesday_morning):
        # Both restricted: the 1st of the month OR any Monday
        result = next_cron_run("0 12 1 * 1", wednesday_morning, LONDON)
        assert result == datetime(2025, 1, 20, 12, 0, tzinfo=LONDON)

    def test_evaluated_in_given_zone(self, wednesday_morning):
        # 10:00 London is 05:00 in New York
        result = next_cron_run("0 9 * * *", wednesday_morning, NEW_YORK)
        assert result == datetime(2025, 1, 15, 9, 0, tzinfo=NEW_YORK)
        assert result.astimezone(timezone.utc).hour == 14

    def test_skips_time_missing_in_spring_forward(self):
        # London clocks jump 01:00 -> 02:00 on 2025-03-30
        now = datetime(2025, 3, 29, 12, 0, tzinfo=LONDON)
        result = next_cron_run("30 1 * * *", now, LONDON)
        assert result == datetime(2025, 3, 31, 1, 30, tzinfo=LONDON)

    def test_repeated_time_fires_once_in_fall_back(self):
        # London clocks go back 02:00 -> 01:00 on 2025-10-26
        now = datetime(2025, 10, 26, 0, 0, tzinfo=LONDON)
        first = next_cron_run("30 1 * * *", now, LONDON)
        assert first.astimezone(timezone.utc) == datetime(2025, 10, 26, 0, 30, tzinfo=timezone.utc)

        second = next_cron_run("30 1 * * *", first, LONDON)
        assert second == datetime(2025, 10, 27, 1, 30, tzinfo=LONDON)

    def test_wildcard_job_keeps_running_in_repeated_hour(self):
        # 01:10 UTC is 01:10 GMT, the second pass through 01:xx
        now = datetime(2025, 10, 26, 1, 10, tzinfo=timezone.utc)
        result = next_cron_run("*/15 * * * *", now, LONDON)
        assert result.astimezone(timezone.utc) == datetime(2025, 10, 26, 1, 15, tzinfo=timezone.utc)
        assert result.fold == 1

    def test_wildcard_job_runs_both_passes_of_fall_back(self):
        now = datetime(2025, 10, 25, 23, 50, tzinfo=timezone.utc)
        runs = []
        for _ in range(5):
            now = next_cron_run("*/30 * * * *", now, LONDON)
            runs.append(now.astimezone(timezone.utc).strftime("%H:%M"))
        assert runs == ["00:00", "00:30", "01:00", "01:30", "02:00"]

    @pytest.mark.parametrize(
        "expr",
        ["* * * * *", "0 9 * * 1", "*/7 3-5 * * *", "0 0 1 */2 *", "15 2 * * sun", "30 1 * * *"],
    )
    @pytest.mark.parametrize("tz_name", ["Europe/London", "America/New_York", "Asia/Kolkata", "UTC"])
    def test_strictly_later_and_advances_on_reevaluation(self, expr, tz_name):
        tz = ZoneInfo(tz_name)
        now = datetime(2025, 3, 29, 23, 59, 59, tzinfo=tz)
        for _ in range(5):
            result = next_cron_run(expr, now, tz)
            assert result is not None
            assert result > now
            now = result


class TestNormalizeJob:
    def test_interval_is_exact(self, wednesday_morning):
        entry = normalize_job(
            make_job(schedule_kind="interval", expr=None, interval_ms=90_061),
            wednesday_morning,
            "Europe/London",
        )
        assert entry.next_run_at - wednesday_morning == timedelta(milliseconds=90_061)
        assert entry.schedule_expr == "90061ms"

    def test_interval_independent_of_timezone(self, wednesday_morning):
        job = make_job(schedule_kind="interval", expr=None, interval_ms=3_600_000, timezone="Asia/Tokyo")
        entry = normalize_job(job, wednesday_morning, "America/New_York")
        assert entry.next_run_at == wednesday_morning + timedelta(hours=1)

    def test_non_positive_interval_has_no_next_run(self, wednesday_morning):
        job = make_job(schedule_kind="interval", expr=None, interval_ms=0)
        assert normalize_job(job, wednesday_morning, "UTC").next_run_at is None

    def test_cron_uses_descriptor_timezone(self, wednesday_morning):
        entry = normalize_job(make_job(timezone="America/New_York"), wednesday_morning, "Europe/London")
        assert entry.next_run_at == datetime(2025, 1, 15, 9, 0, tzinfo=NEW_YORK)

    def test_cron_falls_back_to_default_timezone(self, wednesday_morning):
        entry = normalize_job(make_job(), wednesday_morning, "Europe/London")
        assert entry.next_run_at == datetime(2025, 1, 16, 9, 0, tzinfo=LONDON)

    def test_unparsable_keeps_other_fields(self, wednesday_morning):
        entry = normalize_job(make_job(expr="not a cron", enabled=False), wednesday_morning, "UTC")
        assert entry.next_run_at is None
        assert entry.id == "job-1"
        assert entry.name == "Backup"
        assert entry.kind == "cron"
        assert entry.schedule_expr == "not a cron"
        assert entry.status == "disabled"

    def test_unknown_timezone_has_no_next_run(self, wednesday_morning):
        entry = normalize_job(make_job(timezone="Mars/Olympus"), wednesday_morning, "UTC")
        assert entry.next_run_at is None

    def test_unknown_kind_has_no_next_run(self, wednesday_morning):
        entry = normalize_job(make_job(schedule_kind="at"), wednesday_morning, "UTC")
        assert entry.next_run_at is None
        assert entry.kind == "at"

    def test_name_falls_back_to_payload_then_default(self, wednesday_morning):
        assert normalize_job(make_job(name="", payload_summary="Check mail"), wednesday_morning, "UTC").name == "Check mail"
        assert normalize_job(make_job(name=""), wednesday_morning, "UTC").name == "Scheduled Task"

    def test_to_dict_shape(self, wednesday_morning):
        entry = normalize_job(make_job(), wednesday_morning, "Europe/London")
        assert entry.to_dict() == {
            "id": "job-1",
            "name": "Backup",
            "scheduleType": "cron",
            "scheduleExpr": "0 9 * * *",
            "nextRunAt": "2025-01-16T09:00:00+00:00",
            "status": "active",
            "source": "openclaw",
        }

    def test_to_dict_omits_missing_next_run(self, wednesday_morning):
        entry = normalize_job(make_job(expr="bad"), wednesday_morning, "UTC")
        assert "nextRunAt" not in entry.to_dict()


class TestNormalizeLocalTask:
    def test_cron_row_is_recomputed(self, wednesday_morning):
        entry = normalize_local_task(make_task(next_run_at="2020-01-01 00:00:00"), wednesday_morning, "Europe/London")
        assert entry.next_run_at == datetime(2025, 1, 16, 9, 0, tzinfo=LONDON)
        assert entry.source == "local"
        assert entry.id == "1"

    def test_every_row_is_an_interval(self, wednesday_morning):
        entry = normalize_local_task(
            make_task(schedule_type="every", schedule_expr="60000ms"), wednesday_morning, "UTC"
        )
        assert entry.kind == "interval"
        assert entry.next_run_at == wednesday_morning + timedelta(minutes=1)
        assert entry.schedule_expr == "60000ms"

    def test_other_row_keeps_future_stored_run(self, wednesday_morning):
        entry = normalize_local_task(
            make_task(schedule_type="once", schedule_expr="", next_run_at="2025-02-01 12:00:00"),
            wednesday_morning,
            "UTC",
        )
        assert entry.next_run_at == datetime(2025, 2, 1, 12, 0, tzinfo=timezone.utc)

    def test_other_row_drops_past_stored_run(self, wednesday_morning):
        entry = normalize_local_task(
            make_task(schedule_type="once", next_run_at="2025-01-01 12:00:00"),
            wednesday_morning,
            "UTC",
        )
        assert entry.next_run_at is None

    def test_status_is_preserved(self, wednesday_morning):
        entry = normalize_local_task(make_task(status="paused"), wednesday_morning, "UTC")
        assert entry.status == "paused"


class TestParseIntervalMs:
    @pytest.mark.parametrize(
        "value, expected",
        [(60000, 60000), (1500.0, 1500), ("250", 250), ("250ms", 250), (" 10 ms ", 10), (1.5, None), ("abc", None), (None, None), (True, None)],
    )
    def test_values(self, value, expected):
        assert parse_interval_ms(value) == expected
