"""Settings storage -- re-exports the settings accessor."""

from authsession.storage.config import DEFAULT_SETTINGS, AppSettings

__all__ = ["AppSettings", "DEFAULT_SETTINGS"]
