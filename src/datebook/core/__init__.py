"""Functional core - pure scheduling logic with no I/O."""

from .errors import DatebookError, RecurrenceError, EventValidationError, CalendarError
from .recurrence import RecurrencePattern, parse_weekdays, DEFAULT_HORIZON_YEARS
from .event import Event, EventKind, Occurrence, expand_occurrences
from .outcome import Outcome
from .calendar import Calendar, apply_property, resolve_zone
from .manager import CalendarManager

__all__ = [
    # Errors
    "DatebookError",
    "RecurrenceError",
    "EventValidationError",
    "CalendarError",
    # Recurrence
    "RecurrencePattern",
    "parse_weekdays",
    "DEFAULT_HORIZON_YEARS",
    # Events
    "Event",
    "EventKind",
    "Occurrence",
    "expand_occurrences",
    "Outcome",
    # Calendars
    "Calendar",
    "apply_property",
    "resolve_zone",
    "CalendarManager",
]
