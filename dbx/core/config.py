"""
Settings and file locations.

Settings live in a single JSON file under the config directory. A missing
file yields the defaults (and is written back once so the operator has
something to edit); a corrupt file yields the defaults without complaint.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dbx.core.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:8000/db"

CONFIG_DIR_ENV = "DBX_CONFIG_DIR"
XDG_CONFIG_ENV = "XDG_CONFIG_HOME"

CONFIG_FILE = "config.json"
HISTORY_FILE = "history.json"
LOG_FILE = "dbx.log"

# Floors applied to integer options; anything lower is clamped
_MINIMUMS = {
    "scroll_acceleration": 1,
    "scroll_repeat_threshold": 1,
    "scroll_repeat_timeout_ms": 1,
    "page_scroll_step": 1,
    "max_history_entries": 1,
    "connection_check_sec": 1,
    "max_column_width": 8,
}


@dataclass
class Settings:
    """Operator-tunable options."""

    scroll_acceleration: int = 3  # rows skipped per press once accelerated
    scroll_repeat_threshold: int = 3  # repeats before acceleration engages
    scroll_repeat_timeout_ms: int = 150  # max gap between presses to count as a repeat
    page_scroll_step: int = 10
    max_history_entries: int = 200
    connection_check_sec: int = 5
    max_column_width: int = 40
    endpoint: str = DEFAULT_ENDPOINT

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        """
        Build settings from a decoded config file.

        Unknown keys are ignored. Missing keys and values of the wrong type
        fall back to the default for that key.
        """
        defaults = cls()
        values: Dict[str, Any] = {}
        for field in fields(cls):
            default = getattr(defaults, field.name)
            raw = data.get(field.name, default)
            if isinstance(default, int):
                # bool is an int subclass but never a sensible count
                if not isinstance(raw, int) or isinstance(raw, bool):
                    raw = default
                raw = max(raw, _MINIMUMS.get(field.name, raw))
            elif isinstance(default, str):
                if not isinstance(raw, str) or not raw.strip():
                    raw = default
            values[field.name] = raw
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def config_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Return the directory holding config, history and log files.

    Resolution order: ``$DBX_CONFIG_DIR``, ``$XDG_CONFIG_HOME/dbx``,
    ``~/.config/dbx``.
    """
    env = os.environ if env is None else env
    override = env.get(CONFIG_DIR_ENV)
    if override:
        return Path(os.path.expandvars(override)).expanduser()
    xdg = env.get(XDG_CONFIG_ENV)
    if xdg:
        return Path(xdg).expanduser() / "dbx"
    return Path.home() / ".config" / "dbx"


def load_settings(path: Path) -> Settings:
    """
    Load settings from a JSON file.

    Args:
        path: Config file location

    Returns:
        Settings, falling back to defaults for a missing or corrupt file
    """
    if not path.exists():
        settings = Settings()
        try:
            save_settings(settings, path)
        except PersistenceError as e:
            logger.warning("Could not write default config: %s", e)
        return settings

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return Settings()

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return Settings()

    return Settings.from_dict(data)


def save_settings(settings: Settings, path: Path) -> None:
    """Write settings as pretty-printed JSON, creating parent directories."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Failed to save config to {path}: {e}") from e
