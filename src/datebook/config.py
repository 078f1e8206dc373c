"""Configuration management for Datebook."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DATEBOOK_HOME = Path(os.environ.get("DATEBOOK_HOME", Path.home() / "datebook"))
CONFIG_FILE = DATEBOOK_HOME / "config" / "datebook.conf"
EXPORT_DIR = DATEBOOK_HOME / "exports"


@dataclass
class Config:
    """Datebook configuration."""

    timezone: str = "America/New_York"
    recurrence_horizon_years: int = 5
    auto_decline: bool = True
    export_dir: str = ""
    default_calendar: str = "Default"

    @property
    def export_path(self) -> Path:
        """Directory for exported CSV files."""
        if self.export_dir:
            return Path(self.export_dir).expanduser()
        return EXPORT_DIR


def _parse_bool(value: str) -> bool | None:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    return None


def load_config() -> Config:
    """Load configuration from datebook.conf file."""
    config = Config()

    if not CONFIG_FILE.exists():
        return config

    for line in CONFIG_FILE.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value.startswith('"') or value.startswith("'"):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            value = value.split("#")[0].strip()

        match key:
            case "timezone":
                config.timezone = value
            case "recurrence_horizon_years":
                try:
                    years = int(value)
                except ValueError:
                    logger.warning(f"Ignoring non-numeric RECURRENCE_HORIZON_YEARS: {value!r}")
                    continue
                if years < 1:
                    logger.warning(f"Ignoring RECURRENCE_HORIZON_YEARS below 1: {years}")
                    continue
                config.recurrence_horizon_years = years
            case "auto_decline":
                flag = _parse_bool(value)
                if flag is None:
                    logger.warning(f"Ignoring invalid AUTO_DECLINE value: {value!r}")
                    continue
                config.auto_decline = flag
            case "export_dir":
                config.export_dir = value
            case "default_calendar":
                if value:
                    config.default_calendar = value

    return config
