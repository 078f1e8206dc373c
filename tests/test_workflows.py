"""Tests for the shared workflow layer."""

import csv
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from datebook.adapters.csv_export import HEADER
from datebook.config import Config
from datebook.workflows import build_manager, export_calendar, load_calendar


@pytest.fixture
def config(tmp_path):
    return Config(export_dir=str(tmp_path / "out"), default_calendar="Work")


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "in.csv"
    with path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(HEADER[:9])
        writer.writerow(["Meeting", "01/15/2025", "09:00 AM", "01/15/2025", "10:00 AM", "False", "", "", "False"])
        writer.writerow(["Clash", "01/15/2025", "09:30 AM", "01/15/2025", "10:30 AM", "False", "", "", "False"])
    return path


class TestBuildManager:
    def test_uses_configured_defaults(self):
        manager = build_manager(Config(timezone="Asia/Tokyo", recurrence_horizon_years=2))
        assert manager.default_timezone == "Asia/Tokyo"
        assert manager.horizon_years == 2


class TestLoadCalendar:
    def test_selects_default_calendar(self, config, csv_file):
        manager, calendar = load_calendar(config, [csv_file])
        assert calendar.name == "Work"
        assert manager.current is calendar

    def test_config_auto_decline(self, config, csv_file):
        _, calendar = load_calendar(config, [csv_file])
        assert [e.subject for e in calendar.get_all_events()] == ["Meeting"]

    def test_override_auto_decline(self, config, csv_file):
        _, calendar = load_calendar(config, [csv_file], auto_decline=False)
        assert len(calendar) == 2

    def test_explicit_name_and_zone(self, config, csv_file):
        _, calendar = load_calendar(config, [csv_file], name="Trip", timezone="Europe/Paris")
        assert calendar.name == "Trip"
        assert calendar.timezone.key == "Europe/Paris"

    def test_injected_importer(self, config, csv_file):
        importer = MagicMock()
        _, calendar = load_calendar(config, [csv_file], importer=importer)
        importer.import_into.assert_called_once_with(calendar, csv_file)

    def test_unknown_zone(self, config, csv_file):
        with pytest.raises(ValueError):
            load_calendar(config, [csv_file], timezone="Nowhere/Land")


class TestExportCalendar:
    def test_defaults_to_export_dir(self, config, csv_file):
        _, calendar = load_calendar(config, [csv_file])
        path = export_calendar(config, calendar)
        assert path == (Path(config.export_dir) / "Work.csv").resolve()
        assert path.exists()

    def test_explicit_path(self, config, csv_file, tmp_path):
        _, calendar = load_calendar(config, [csv_file])
        path = export_calendar(config, calendar, tmp_path / "mine.csv")
        assert path.name == "mine.csv"

    def test_injected_exporter(self, config, csv_file, tmp_path):
        exporter = MagicMock()
        exporter.export.return_value = tmp_path / "elsewhere.ics"
        _, calendar = load_calendar(config, [csv_file])

        assert export_calendar(config, calendar, exporter=exporter) == tmp_path / "elsewhere.ics"
        exporter.export.assert_called_once_with(calendar, Path(config.export_dir) / "Work.csv")
