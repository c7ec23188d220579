"""Logging configuration for the API server and the CLI."""

import logging
import sys

from taskboard.config import get_settings

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ("aiosqlite", "httpx", "httpcore")


def setup_logging(level: str | int | None = None) -> None:
    """Configure root logging with a single stderr handler.

    Safe to call more than once: existing root handlers are replaced so
    repeated app factory calls (tests, reloads) don't duplicate output.
    """
    settings = get_settings()
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(settings.log_format))
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # SQL echo is controlled by the engine; keep it out of INFO otherwise
    if not settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.captureWarnings(True)
