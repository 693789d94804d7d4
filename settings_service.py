"""Centralized settings loader for the application.

Infrastructure-level module; must not import from services/, repositories/,
config.py, or logging_config.py. logging_config reads the log level from here.
"""

import tomllib
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path("settings.toml")

_cached_settings: dict[Path, dict] = {}


def _load_settings(settings_path: Path = DEFAULT_SETTINGS_PATH) -> dict:
    """Load and cache settings from the TOML file."""
    settings_path = Path(settings_path)
    if settings_path in _cached_settings:
        return _cached_settings[settings_path]
    try:
        with open(settings_path, "rb") as f:
            settings = tomllib.load(f)
    except Exception as e:
        logger.error("Failed to load settings from %s: %s", settings_path, e)
        raise
    _cached_settings[settings_path] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop cached settings so the next read goes back to disk."""
    _cached_settings.clear()


def get_all_project_configs(settings_path: Path = DEFAULT_SETTINGS_PATH) -> dict:
    """Return a dict of ProjectSettings keyed by project alias (e.g. 'project_one').

    Module-level convenience function so callers don't need SettingsService.
    """
    from domain.project import ProjectSettings

    settings = _load_settings(settings_path)
    projects_raw = settings.get("projects", {})
    configs: dict = {}
    for alias, vals in projects_raw.items():
        configs[alias] = ProjectSettings(
            alias=alias,
            url=vals["url"],
            display_name=vals.get("display_name", alias),
            read_only=bool(vals.get("read_only", False)),
        )
    return configs


class SettingsService:
    """Read-only accessor for application settings.

    Settings are cached at module level after the first read.
    """

    def __init__(self, settings_path: str | Path = DEFAULT_SETTINGS_PATH):
        self.settings_path = Path(settings_path)
        self.settings = _load_settings(self.settings_path)

    @property
    def settings_dict(self) -> dict:
        """Return the full settings dictionary."""
        return self.settings

    @property
    def log_level(self) -> str:
        return self.settings["env"]["log_level"]

    @property
    def env(self) -> str:
        return self.settings["env"]["env"]

    @property
    def projects(self) -> dict:
        return get_all_project_configs(self.settings_path)
