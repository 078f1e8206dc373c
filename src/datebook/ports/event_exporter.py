"""Event export interface."""

from pathlib import Path
from typing import Protocol

from datebook.core.calendar import Calendar


class EventExporter(Protocol):
    """Interface for writing a calendar's occurrences to some external format."""

    def export(self, calendar: Calendar, path: Path | str) -> Path:
        """Write every occurrence of the calendar. Returns the absolute path written."""
        ...
