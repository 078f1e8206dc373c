"""Event import interface."""

from pathlib import Path
from typing import Protocol

from datebook.core.calendar import Calendar


class EventImporter(Protocol):
    """Interface for loading events from some external format into a calendar."""

    def import_into(self, calendar: Calendar, path: Path | str) -> int:
        """Create events in the calendar. Returns the number created."""
        ...
