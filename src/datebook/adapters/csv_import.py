"""Google Calendar CSV importer."""

import csv
import logging
from datetime import date, datetime, time
from pathlib import Path

from datebook.core.calendar import Calendar
from datebook.core.outcome import Outcome

from .csv_export import DATE_FORMAT, TIME_FORMAT

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = 9


def _parse_date(value: str) -> date:
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def _parse_time(value: str) -> time:
    value = value.strip()
    for fmt in (TIME_FORMAT, "%H:%M"):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized time: {value!r}")


class CsvEventImporter:
    """
    Reads Google Calendar CSV rows into a calendar.

    Implements EventImporter protocol. Rows that are short or unparseable
    are logged and skipped.
    """

    def __init__(self, auto_decline: bool = True):
        self.auto_decline = auto_decline

    def import_into(self, calendar: Calendar, path: Path | str) -> int:
        path = Path(path).expanduser()
        created = 0

        with path.open(newline="") as f:
            reader = csv.reader(f)
            next(reader, None)  # header
            for line_no, record in enumerate(reader, start=2):
                if len(record) < REQUIRED_COLUMNS:
                    logger.warning(f"{path.name}:{line_no}: expected {REQUIRED_COLUMNS} columns, got {len(record)}")
                    continue
                try:
                    outcome = self._import_row(calendar, record)
                except ValueError as e:
                    logger.warning(f"{path.name}:{line_no}: {e}")
                    continue
                if outcome:
                    created += 1
                else:
                    logger.warning(f"{path.name}:{line_no}: {outcome.reason}")

        logger.info(f"Imported {created} event(s) from {path} into {calendar.name}")
        return created

    def _import_row(self, calendar: Calendar, record: list[str]) -> Outcome:
        subject, start_date, start_time, end_date, end_time, all_day, description, location, private = (
            v.strip() for v in record[:REQUIRED_COLUMNS]
        )
        is_public = private.lower() != "true"

        if all_day.lower() == "true":
            return calendar.create_all_day_event(
                subject,
                _parse_date(start_date),
                auto_decline=self.auto_decline,
                description=description,
                location=location,
                is_public=is_public,
            )

        start = datetime.combine(_parse_date(start_date), _parse_time(start_time))
        end = datetime.combine(_parse_date(end_date or start_date), _parse_time(end_time))
        return calendar.create_event(
            subject,
            start,
            end,
            auto_decline=self.auto_decline,
            description=description,
            location=location,
            is_public=is_public,
        )
