"""Application settings persisted as JSON in the user config directory.

Only configuration lives here.  Tokens are never written to disk.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from .paths import SETTINGS_FILE, atomic_write

DEFAULT_SETTINGS: dict[str, Any] = {
    "debug": False,
    "api_base_url": "http://localhost:8000/api",
    "request_timeout_seconds": 30.0,
    "refresh_threshold_seconds": 300,
}


class AppSettings:
    """Thin accessor around the settings file.

    Every call re-reads the file so that edits made by another process (or
    by ``authsession settings``) are picked up without restarting.
    """

    @staticmethod
    def load() -> dict[str, Any]:
        """Return the defaults overlaid with whatever the file contains.

        A missing or corrupt file yields the defaults.
        """
        settings = dict(DEFAULT_SETTINGS)
        if not SETTINGS_FILE.exists():
            return settings
        try:
            stored = json.loads(SETTINGS_FILE.read_text(encoding="utf-8"))
        except Exception as exc:
            logger.warning(f"Failed to load settings from {SETTINGS_FILE}: {exc}")
            return settings
        if not isinstance(stored, dict):
            logger.warning(f"Ignoring settings file {SETTINGS_FILE}: not a JSON object")
            return settings
        settings.update(stored)
        return settings

    @classmethod
    def save(cls, settings: dict[str, Any]) -> None:
        """Persist *settings* to disk atomically."""
        atomic_write(SETTINGS_FILE, json.dumps(settings, indent=2, sort_keys=True))
        logger.debug(f"Settings saved to {SETTINGS_FILE}")

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        return cls.load().get(key, default)

    @classmethod
    def set(cls, key: str, value: Any) -> None:
        settings = cls.load()
        settings[key] = value
        cls.save(settings)
