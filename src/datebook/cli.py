"""Datebook CLI - query and convert calendar CSV files."""

import json
import logging
import sys
from datetime import date, datetime

import click

from .config import load_config
from .core.event import Occurrence
from .workflows import export_calendar, load_calendar

CSV_FILES = click.argument(
    "files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False)
)


def _parse_date(value: str, label: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"{label} must be YYYY-MM-DD, got {value!r}")


def _parse_datetime(value: str, label: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"{label} must be YYYY-MM-DDTHH:MM, got {value!r}")


def _load(files, tz, allow_conflicts):
    """Load CSV files into a fresh calendar, exiting on a bad zone."""
    config = load_config()
    try:
        return config, *load_calendar(
            config,
            list(files),
            timezone=tz,
            auto_decline=False if allow_conflicts else None,
        )
    except (ValueError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _export(config, calendar, output):
    try:
        return export_calendar(config, calendar, output)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _show_occurrences(occurrences: list[Occurrence], as_json: bool, empty_msg: str) -> None:
    """Shared occurrence display logic."""
    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "subject": o.subject,
                        "start": o.start.isoformat(),
                        "end": o.end.isoformat() if o.end else None,
                        "all_day": o.all_day,
                        "location": o.location,
                        "description": o.description,
                        "public": o.is_public,
                    }
                    for o in occurrences
                ],
                indent=2,
            )
        )
        return

    if not occurrences:
        click.echo(empty_msg)
        return

    current_date = None
    for occ in occurrences:
        occ_date = occ.start.date()
        if occ_date != current_date:
            if current_date is not None:
                click.echo()
            click.echo(f"### {occ_date.strftime('%A, %B %d')}")
            current_date = occ_date

        time_str = "All day" if occ.all_day else f"{occ.start:%H:%M}-{occ.end:%H:%M}"
        loc = f" @ {occ.location}" if occ.location else ""
        click.echo(f"  {time_str:12} {occ.subject}{loc}")


@click.group()
@click.version_option(package_name="datebook")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Datebook - calendars with recurrence, conflicts and time zones."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@CSV_FILES
@click.option("--date", "-d", "target_date", default=None, help="Date to show (YYYY-MM-DD), defaults to today")
@click.option("--tz", default=None, help="Time zone of the CSV times")
@click.option("--allow-conflicts", is_flag=True, help="Import overlapping events too")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def day(files, target_date, tz, allow_conflicts, as_json):
    """Show events on one day."""
    target = _parse_date(target_date, "--date") if target_date else date.today()
    _, _, calendar = _load(files, tz, allow_conflicts)
    _show_occurrences(calendar.occurrences_on(target), as_json, f"No events on {target}.")


@main.command("range")
@CSV_FILES
@click.option("--from", "start", required=True, help="First date (YYYY-MM-DD)")
@click.option("--to", "end", required=True, help="Last date (YYYY-MM-DD)")
@click.option("--tz", default=None, help="Time zone of the CSV times")
@click.option("--allow-conflicts", is_flag=True, help="Import overlapping events too")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show_range(files, start, end, tz, allow_conflicts, as_json):
    """Show events in a date range."""
    first = _parse_date(start, "--from")
    last = _parse_date(end, "--to")
    _, _, calendar = _load(files, tz, allow_conflicts)
    _show_occurrences(
        calendar.occurrences_between(first, last), as_json, f"No events from {first} to {last}."
    )


@main.command()
@CSV_FILES
@click.option("--at", "at", required=True, help="Instant to check (YYYY-MM-DDTHH:MM)")
@click.option("--tz", default=None, help="Time zone of the CSV times")
def status(files, at, tz):
    """Report busy or available at an instant."""
    instant = _parse_datetime(at, "--at")
    _, _, calendar = _load(files, tz, allow_conflicts=True)
    click.echo("Busy" if calendar.is_busy(instant) else "Available")


@main.command()
@CSV_FILES
@click.option("--from-tz", required=True, help="Time zone of the CSV times")
@click.option("--to-tz", required=True, help="Time zone to convert to")
@click.option("--output", "-o", default=None, help="Output CSV path")
def convert(files, from_tz, to_tz, output):
    """Re-express a calendar in another time zone."""
    config, manager, calendar = _load(files, from_tz, allow_conflicts=True)
    outcome = manager.edit_calendar(calendar.name, "timezone", to_tz)
    if not outcome:
        click.echo(f"Error: {outcome.reason}", err=True)
        sys.exit(1)
    path = _export(config, calendar, output)
    click.echo(f"Calendar exported to: {path}")


@main.command("copy-day")
@CSV_FILES
@click.option("--date", "-d", "source_date", required=True, help="Day to copy (YYYY-MM-DD)")
@click.option("--to-date", required=True, help="Day to copy onto (YYYY-MM-DD)")
@click.option("--tz", default=None, help="Time zone of the CSV times")
@click.option("--to-tz", default=None, help="Time zone of the destination calendar")
@click.option("--output", "-o", default=None, help="Output CSV path")
def copy_day(files, source_date, to_date, tz, to_tz, output):
    """Copy one day's events into a new calendar and export it."""
    source_day = _parse_date(source_date, "--date")
    target_day = _parse_date(to_date, "--to-date")
    config, manager, calendar = _load(files, tz, allow_conflicts=True)

    target_name = f"{calendar.name}-copy"
    created = manager.create_calendar(target_name, to_tz or calendar.timezone.key)
    if not created:
        click.echo(f"Error: {created.reason}", err=True)
        sys.exit(1)

    outcome = manager.copy_events_on_day(source_day, target_name, target_day)
    if not outcome:
        click.echo(f"Error: {outcome.reason}", err=True)
        sys.exit(1)

    path = _export(config, manager.get_calendar(target_name), output)
    click.echo(f"Copied {len(outcome.events)} event(s); exported to: {path}")
