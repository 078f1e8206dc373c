"""Datebook - in-memory calendars with recurrence, conflicts and time zones."""

__version__ = "0.1.0"
