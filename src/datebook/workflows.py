"""Shared workflows - wire config, core and adapters together."""

import logging
from pathlib import Path

from .adapters.csv_export import CsvEventExporter
from .adapters.csv_import import CsvEventImporter
from .config import Config
from .core.calendar import Calendar
from .core.manager import CalendarManager
from .ports import EventExporter, EventImporter

logger = logging.getLogger(__name__)


def build_manager(config: Config) -> CalendarManager:
    """Empty calendar registry using the configured defaults."""
    return CalendarManager(
        default_timezone=config.timezone,
        horizon_years=config.recurrence_horizon_years,
    )


def load_calendar(
    config: Config,
    paths: list[Path | str],
    name: str | None = None,
    timezone: str | None = None,
    auto_decline: bool | None = None,
    importer: EventImporter | None = None,
) -> tuple[CalendarManager, Calendar]:
    """
    Create a calendar, select it, and fill it from CSV files.

    Raises ValueError if the calendar cannot be created (e.g. unknown zone).
    """
    manager = build_manager(config)
    name = name or config.default_calendar
    outcome = manager.create_calendar(name, timezone)
    if not outcome:
        raise ValueError(outcome.reason)
    manager.use_calendar(name)
    calendar = manager.current

    if importer is None:
        importer = CsvEventImporter(
            auto_decline=config.auto_decline if auto_decline is None else auto_decline
        )
    for path in paths:
        importer.import_into(calendar, path)
    logger.debug(f"Loaded {len(calendar)} event(s) into {calendar.name}")
    return manager, calendar


def export_calendar(
    config: Config,
    calendar: Calendar,
    path: Path | str | None = None,
    exporter: EventExporter | None = None,
) -> Path:
    """Write a calendar as CSV, defaulting to <export dir>/<name>.csv."""
    if path is None:
        path = config.export_path / f"{calendar.name}.csv"
    return (exporter or CsvEventExporter()).export(calendar, path)
