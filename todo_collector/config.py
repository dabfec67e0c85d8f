"""
Configuration management for todo collection.

Settings and item state are stored together as a TOML file in a hidden
directory at the vault root (``.todo-collector/todo-collector.toml``).
"""

import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import tomli_w

from .protocol import SettingsStoreProtocol

logger = logging.getLogger(__name__)

STATE_DIRNAME = ".todo-collector"
CONFIG_FILENAME = "todo-collector.toml"
CONFIG_VERSION = 1

DEFAULT_OUTPUT_FILE = "TODO.md"
DEFAULT_CHECKED_HEADER = "Completed"

# 0 means completed items never decay
DECAY_DAY_CHOICES = (0, 1, 2, 3, 5, 7, 14)

# Changing any of these re-renders the aggregate
REFRESH_SETTINGS = frozenset({
    "exclude_folders",
    "enable_time_groups",
    "decay_days",
    "show_decay_countdown",
})


@dataclass
class CollectorSettings:
    """User-facing options."""
    output_file_path: str = DEFAULT_OUTPUT_FILE
    exclude_folders: list[str] = field(default_factory=list)
    pin_to_top: bool = True  # consumed by file-explorer integrations only
    show_checked_section: bool = True
    checked_section_header: str = DEFAULT_CHECKED_HEADER
    enable_time_groups: bool = False
    decay_days: int = 0
    show_decay_countdown: bool = True

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "CollectorSettings":
        """Build settings from a stored record, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in record.items() if k in known}
        settings = cls(**values)
        if settings.decay_days not in DECAY_DAY_CHOICES:
            logger.warning(
                "Ignoring unsupported decay_days=%r in config", settings.decay_days
            )
            settings.decay_days = 0
        return settings

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    def set_value(self, name: str, value: str) -> None:
        """
        Update a setting from its string form (CLI input).

        Raises:
            ValueError: unknown setting or invalid value
        """
        known = {f.name: f for f in fields(self)}
        if name not in known:
            raise ValueError(
                f"Unknown setting {name!r} (expected one of: {', '.join(known)})"
            )
        current = getattr(self, name)

        if isinstance(current, bool):
            parsed: Any = _parse_bool(value)
        elif isinstance(current, int):
            try:
                parsed = int(value)
            except ValueError:
                raise ValueError(f"{name} must be an integer: {value!r}")
            if name == "decay_days" and parsed not in DECAY_DAY_CHOICES:
                choices = ", ".join(str(c) for c in DECAY_DAY_CHOICES)
                raise ValueError(f"decay_days must be one of {choices} (0 = never)")
        elif isinstance(current, list):
            parsed = [s.strip() for s in value.split(",") if s.strip()]
        else:
            parsed = value.strip()
            if name == "output_file_path" and not parsed:
                parsed = DEFAULT_OUTPUT_FILE
            if name == "checked_section_header" and not parsed:
                parsed = DEFAULT_CHECKED_HEADER

        setattr(self, name, parsed)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Expected a boolean (true/false): {value!r}")


def get_state_dir(vault: Path) -> Path:
    """Directory holding config, logs and error logs for a vault.

    TODO_COLLECTOR_STATE_PATH overrides the default location.
    """
    override = os.environ.get("TODO_COLLECTOR_STATE_PATH")
    if override:
        return Path(override).expanduser().resolve()
    return Path(vault).resolve() / STATE_DIRNAME


class SettingsStore:
    """
    TOML-backed settings store.

    The stored record is opaque to this class apart from the ``store``
    table, which carries the format version.
    """

    def __init__(self, state_dir: Path):
        self._state_dir = Path(state_dir)

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self._state_dir / CONFIG_FILENAME

    def load(self) -> dict[str, Any]:
        """
        Load the stored record.

        Returns an empty dict if nothing has been saved yet.

        Raises:
            ValueError: If the file is not valid TOML or is from a newer version
        """
        if not self.config_path.exists():
            return {}

        with open(self.config_path, "rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid config {self.config_path}: {e}") from e

        version = data.get("store", {}).get("version", 1)
        if version > CONFIG_VERSION:
            raise ValueError(
                f"Config version {version} is newer than supported ({CONFIG_VERSION})"
            )
        return data

    def save(self, record: dict[str, Any]) -> None:
        """
        Save the record, replacing the file atomically.

        Creates the state directory if it doesn't exist.
        """
        self._state_dir.mkdir(parents=True, exist_ok=True)

        data = dict(record)
        data["store"] = {"version": CONFIG_VERSION}

        tmp_path = self.config_path.with_suffix(".toml.tmp")
        with open(tmp_path, "wb") as f:
            tomli_w.dump(data, f)
        tmp_path.replace(self.config_path)


def load_settings(
    store: SettingsStoreProtocol, record: Optional[dict[str, Any]] = None
) -> CollectorSettings:
    """Load settings from a store (or an already-loaded record)."""
    if record is None:
        record = store.load()
    return CollectorSettings.from_record(record.get("settings", {}))
