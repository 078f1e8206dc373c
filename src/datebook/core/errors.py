"""Exceptions raised inside the core while validating input."""


class DatebookError(ValueError):
    """Base class for all datebook validation errors."""


class RecurrenceError(DatebookError):
    """Malformed weekday codes or recurrence terminator."""


class EventValidationError(DatebookError):
    """An event would violate its invariants."""


class CalendarError(DatebookError):
    """Bad calendar name or time zone."""
