"""Ports - interfaces/protocols for external dependencies."""

from .event_exporter import EventExporter
from .event_importer import EventImporter

__all__ = [
    "EventExporter",
    "EventImporter",
]
