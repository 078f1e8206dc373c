"""Google Calendar CSV exporter."""

import csv
import logging
from pathlib import Path

from datebook.core.calendar import Calendar
from datebook.core.event import Occurrence, expand_occurrences

logger = logging.getLogger(__name__)

HEADER = [
    "Subject",
    "Start Date",
    "Start Time",
    "End Date",
    "End Time",
    "All Day Event",
    "Description",
    "Location",
    "Private",
    "Calendar",
    "Timezone",
]
DATE_FORMAT = "%m/%d/%Y"
TIME_FORMAT = "%I:%M %p"


def format_row(occ: Occurrence, calendar: Calendar) -> list[str]:
    """One CSV row for an occurrence, in Google Calendar's column order."""
    row = occ.to_row()
    return [
        row["subject"],
        row["start_date"].strftime(DATE_FORMAT),
        row["start_time"].strftime(TIME_FORMAT) if row["start_time"] else "",
        row["end_date"].strftime(DATE_FORMAT),
        row["end_time"].strftime(TIME_FORMAT) if row["end_time"] else "",
        "True" if row["all_day"] else "False",
        row["description"],
        row["location"],
        "True" if row["private"] else "False",
        calendar.name,
        calendar.timezone.key,
    ]


class CsvEventExporter:
    """
    Writes a calendar as Google Calendar CSV.

    Implements EventExporter protocol. Recurring events are expanded to one
    row per occurrence.
    """

    def export(self, calendar: Calendar, path: Path | str) -> Path:
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        occurrences = expand_occurrences(calendar.get_all_events(), calendar.horizon_years)

        with path.open("w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(HEADER)
            for occ in occurrences:
                writer.writerow(format_row(occ, calendar))

        logger.info(f"Exported {len(occurrences)} occurrence(s) from {calendar.name} to {path}")
        return path.resolve()
