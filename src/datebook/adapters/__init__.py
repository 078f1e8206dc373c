"""Adapters - I/O implementations of ports."""

from .csv_export import CsvEventExporter
from .csv_import import CsvEventImporter

__all__ = [
    "CsvEventExporter",
    "CsvEventImporter",
]
