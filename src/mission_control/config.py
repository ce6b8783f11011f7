"""Configuration management for Mission Control."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

MISSION_HOME = Path(os.environ.get("MISSION_HOME", Path.home() / "mission-control"))
CONFIG_FILE = MISSION_HOME / "config" / "mission.conf"
DATA_DIR = MISSION_HOME / "data"


@dataclass
class Config:
    """Mission Control configuration."""

    timezone: str = "Europe/London"
    notes_dir: str = ""
    main_note: str = ""
    database_path: str = ""
    cron_binary: str = "openclaw"
    calendar_binary: str = "gog"
    calendar_id: str = ""
    calendar_account: str = ""
    mail_account: str = ""
    source_timeout: float = 10.0
    search_limit: int = 20
    upcoming_limit: int = 5
    bucket_items_per_kind: int = 2
    mail_limit: int = 20
    activity_url: str = "http://localhost:3010"

    def notes_path(self) -> Path:
        if self.notes_dir:
            return Path(self.notes_dir).expanduser()
        return MISSION_HOME / "memory"

    def main_note_path(self) -> Path:
        if self.main_note:
            return Path(self.main_note).expanduser()
        return MISSION_HOME / "MEMORY.md"

    def database_file(self) -> Path:
        if self.database_path:
            return Path(self.database_path).expanduser()
        return DATA_DIR / "mission-control.db"


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _positive_number(key: str, value: str, cast):
    try:
        number = cast(value)
    except ValueError:
        logger.warning(f"Ignoring invalid {key.upper()}: {value!r}")
        return None
    if number <= 0:
        logger.warning(f"Ignoring non-positive {key.upper()}: {value!r}")
        return None
    return number


def load_config() -> Config:
    """Load configuration from mission.conf file."""
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
        value = _unquote(value.strip())

        match key:
            case "timezone":
                config.timezone = value
            case "notes_dir":
                config.notes_dir = value
            case "main_note":
                config.main_note = value
            case "database_path":
                config.database_path = value
            case "cron_binary":
                config.cron_binary = value
            case "calendar_binary":
                config.calendar_binary = value
            case "calendar_id":
                config.calendar_id = value
            case "mail_account":
                config.mail_account = value
            case "calendar_account":
                config.calendar_account = value
            case "activity_url":
                config.activity_url = value
            case "source_timeout":
                timeout = _positive_number(key, value, float)
                if timeout is not None:
                    config.source_timeout = timeout
            case "search_limit" | "upcoming_limit" | "bucket_items_per_kind" | "mail_limit":
                number = _positive_number(key, value, int)
                if number is not None:
                    setattr(config, key, number)
            case _:
                logger.debug(f"Unknown config key: {key}")

    return config
