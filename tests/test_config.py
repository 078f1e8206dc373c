"""Tests for datebook.conf parsing."""

from pathlib import Path
from unittest.mock import patch

from datebook.config import Config, EXPORT_DIR, load_config


def load_from(tmp_path, text):
    config_file = tmp_path / "datebook.conf"
    config_file.write_text(text)
    with patch("datebook.config.CONFIG_FILE", config_file):
        return load_config()


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path):
        with patch("datebook.config.CONFIG_FILE", tmp_path / "missing.conf"):
            config = load_config()
        assert config == Config()

    def test_reads_values(self, tmp_path):
        config = load_from(
            tmp_path,
            "TIMEZONE=Europe/London\n"
            "RECURRENCE_HORIZON_YEARS=2\n"
            "AUTO_DECLINE=false\n"
            "DEFAULT_CALENDAR=Personal\n",
        )
        assert config.timezone == "Europe/London"
        assert config.recurrence_horizon_years == 2
        assert config.auto_decline is False
        assert config.default_calendar == "Personal"

    def test_comments_and_quotes(self, tmp_path):
        config = load_from(
            tmp_path,
            "# datebook settings\n"
            'TIMEZONE="Asia/Tokyo" # office\n'
            "EXPORT_DIR=~/exports # shared\n"
            "not a setting\n",
        )
        assert config.timezone == "Asia/Tokyo"
        assert config.export_dir == "~/exports"

    def test_invalid_values_are_ignored(self, tmp_path):
        config = load_from(
            tmp_path,
            "RECURRENCE_HORIZON_YEARS=soon\nAUTO_DECLINE=perhaps\n",
        )
        assert config.recurrence_horizon_years == 5
        assert config.auto_decline is True

    def test_horizon_must_be_positive(self, tmp_path):
        assert load_from(tmp_path, "RECURRENCE_HORIZON_YEARS=0").recurrence_horizon_years == 5


class TestExportPath:
    def test_expands_user(self):
        assert Config(export_dir="~/cal").export_path == Path.home() / "cal"

    def test_falls_back_to_default(self):
        assert Config().export_path == EXPORT_DIR
