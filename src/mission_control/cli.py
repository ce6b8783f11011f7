"""Mission Control CLI - search and schedule views over every source."""

import json
import logging
import sqlite3
import sys
from datetime import date

import click

from .adapters import ActivityClient
from .aggregate import MissionControl
from .config import load_config
from .core.activity import ActivityTypes, InputError


def _echo_json(payload: dict) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _input_error(e: InputError) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(2)


def _complete_activity_type(ctx, param, incomplete: str) -> list[str]:
    return [t for t in ActivityTypes.all() if t.startswith(incomplete)]


def _parse_meta(pairs: tuple[str, ...]) -> dict[str, str] | None:
    metadata = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InputError(f"Metadata must be KEY=VALUE, got {pair!r}")
        metadata[key] = value
    return metadata or None


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(package_name="mission-control")
@click.pass_context
def main(ctx, debug: bool):
    """Mission Control - merged search and schedule views."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    ctx.obj = MissionControl.from_config(load_config())
    ctx.call_on_close(ctx.obj.store.close)


@main.command()
@click.argument("query")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def search(mc: MissionControl, query: str, as_json: bool):
    """Search the activity log and notes."""
    view = mc.search(query)
    if as_json:
        _echo_json(view.to_dict())
        return

    if not view.results:
        click.echo("No results.")
        return

    for record in view.results:
        where = record.path or record.timestamp or ""
        click.echo(f"[{record.score:5.1f}] {record.type:8} {record.title}  {where}".rstrip())
        for line in record.content.splitlines()[:3]:
            click.echo(f"          {line}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def schedule(mc: MissionControl, as_json: bool):
    """List scheduled tasks from the cron scheduler and the local store."""
    view = mc.schedule()
    if as_json:
        _echo_json(view.to_dict())
        return

    if not view.tasks:
        click.echo("No scheduled tasks.")
        return

    for task in view.tasks:
        next_run = task.next_run_at.strftime("%a %d %b %H:%M") if task.next_run_at else "-"
        marker = " " if task.status == "active" else "x"
        click.echo(f"[{marker}] {next_run:16} {task.name} ({task.schedule_expr}, {task.source})")


@main.command("schedule-add")
@click.argument("name")
@click.argument("schedule_type", type=click.Choice(["cron", "interval"]))
@click.argument("expr")
@click.option("--job-id", default=None, help="External job id to link")
@click.pass_obj
def schedule_add(mc: MissionControl, name: str, schedule_type: str, expr: str, job_id: str | None):
    """Add a local scheduled task."""
    try:
        task_id = mc.add_local_task(name, schedule_type, expr, job_id=job_id)
    except InputError as e:
        _input_error(e)
    click.echo(f"Added task {task_id}")


@main.command()
@click.option("--days", default=7, show_default=True, help="Days ahead to include")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def calendar(mc: MissionControl, days: int, as_json: bool):
    """Show upcoming calendar events."""
    try:
        view = mc.calendar(days=days)
    except InputError as e:
        _input_error(e)

    if as_json:
        _echo_json(view.to_dict())
        return

    if not view.events:
        click.echo("No upcoming events.")
        return

    current_date = None
    for event in view.events:
        event_date = event.local_date(mc.tz)
        if event_date != current_date:
            if current_date is not None:
                click.echo()
            label = event_date.strftime("%A, %B %d") if event_date else "Undated"
            click.echo(f"### {label}")
            current_date = event_date

        time_str = "All day" if event.is_all_day or not event.start else event.start.astimezone(mc.tz).strftime("%H:%M")
        loc = f" @ {event.location}" if event.location else ""
        click.echo(f"  {time_str:8} {event.title}{loc}")


@main.command()
@click.option("--date", "anchor", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Any day in the week")
@click.option("--days", type=int, default=None, help="Forward window instead of a week")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def week(mc: MissionControl, anchor, days: int | None, as_json: bool):
    """Show the week grid and what is coming up next."""
    anchor_date: date | None = anchor.date() if anchor else None
    try:
        view = mc.overview(days=days, anchor=anchor_date)
    except InputError as e:
        _input_error(e)

    if as_json:
        _echo_json(view.to_dict())
        return

    for bucket in view.days:
        click.echo(f"### {bucket.date.strftime('%a %d %b')}")
        for item in bucket.calendar_items:
            click.echo(f"  event  {item.title}")
        for entry in bucket.schedule_entries:
            click.echo(f"  task   {entry.name}")
        if bucket.overflow_count:
            click.echo(f"  +{bucket.overflow_count} more")

    click.echo()
    click.echo("Upcoming:")
    if not view.upcoming:
        click.echo("  No upcoming tasks or events")
    for item in view.upcoming:
        click.echo(f"  {item.at.astimezone(mc.tz).strftime('%a %d %b %H:%M')}  {item.title}")


@main.command()
@click.argument("activity_type", shell_complete=_complete_activity_type)
@click.argument("title")
@click.option("--description", "-d", default=None, help="Longer description")
@click.option("--meta", multiple=True, help="Metadata as KEY=VALUE (repeatable)")
@click.option("--remote", is_flag=True, help="Post to the running service instead of the local store")
@click.pass_obj
def log(mc: MissionControl, activity_type: str, title: str, description: str | None, meta: tuple, remote: bool):
    """Record an activity in the event log."""
    try:
        metadata = _parse_meta(meta)
        if remote:
            client = ActivityClient(mc.config.activity_url, timeout=mc.config.source_timeout)
            if not client.log(activity_type, title, description, metadata):
                click.echo("Error: activity was not accepted by the service", err=True)
                sys.exit(1)
            click.echo("Logged activity remotely")
            return
        activity_id = mc.log_activity(activity_type, title, description, metadata)
    except InputError as e:
        _input_error(e)
    except sqlite3.Error as e:
        click.echo(f"Error: failed to write activity: {e}", err=True)
        sys.exit(1)
    click.echo(f"Logged activity {activity_id}")


@main.command()
@click.option("--type", "filter_type", default=None, shell_complete=_complete_activity_type, help="Only this activity type")
@click.option("--limit", default=50, show_default=True)
@click.option("--offset", default=0, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def activities(mc: MissionControl, filter_type: str | None, limit: int, offset: int, as_json: bool):
    """List recent activities."""
    try:
        records = mc.activities(filter_type, limit, offset)
    except InputError as e:
        _input_error(e)

    if as_json:
        _echo_json({"activities": [a.to_dict() for a in records]})
        return

    if not records:
        click.echo("No activities.")
        return

    for activity in records:
        click.echo(f"{activity.created_at}  {activity.type:9} {activity.title}")


@main.command()
@click.argument("query", required=False)
@click.option("--max", "limit", type=int, default=None, help="Maximum messages to fetch")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def mail(mc: MissionControl, query: str | None, limit: int | None, as_json: bool):
    """List mailbox messages (unread by default)."""
    try:
        view = mc.mail(query, limit=limit)
    except InputError as e:
        _input_error(e)

    if as_json:
        _echo_json(view.to_dict())
        return

    if not view.emails:
        click.echo("No messages.")
        return

    for message in view.emails:
        marker = "*" if message.is_unread else " "
        click.echo(f"{marker} {message.sender:24.24} {message.subject}")
