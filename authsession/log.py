"""loguru sink setup shared by the CLI and embedding applications."""

from __future__ import annotations

import logging
import sys

from loguru import logger

from .storage.config import AppSettings


class InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records (httpx, httpcore) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(exception=record.exc_info).log(level, record.getMessage())


def configure_logging(debug: bool | None = None) -> None:
    """Replace loguru's default sink with one on stderr.

    When *debug* is ``None`` the ``debug`` setting decides the level.
    """
    if debug is None:
        debug = bool(AppSettings.get("debug", False))
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if debug else "WARNING",
        format="{time:HH:mm:ss} {level} {name}: {message}",
    )
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
    logging.getLogger("httpx").setLevel(logging.INFO if debug else logging.WARNING)
    if debug:
        logger.debug("Debug logging enabled")
