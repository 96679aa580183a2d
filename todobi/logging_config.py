"""Logging setup for todobi.

All records go to a rotating file under ~/.todobi/logs. The terminal belongs
to the Textual interface while the app runs, so nothing is written to
stdout/stderr unless Textual's own handler is requested (``textual run
--dev`` shows it in the devtools console).

The level comes from the ``log_level`` argument, then TODOBI_LOG_LEVEL, then
INFO.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from textual.logging import TextualHandler


LOG_DIR = Path.home() / ".todobi" / "logs"
LOG_FILE = LOG_DIR / "todobi.log"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_BYTES = 10 * 1024 * 1024  # 10MB per file
BACKUP_COUNT = 5

LOG_LEVEL_ENV = "TODOBI_LOG_LEVEL"


def _resolve_level(log_level: Optional[str]) -> str:
    """Name of the level to use; unknown names fall back to INFO."""
    name = (log_level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    if not isinstance(logging.getLevelName(name), int):
        return "INFO"
    return name


def _make_handler(use_textual_handler: bool) -> logging.Handler:
    if use_textual_handler:
        return TextualHandler()

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        LOG_FILE,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )


def setup_logging(
    log_level: Optional[str] = None,
    use_textual_handler: bool = False
) -> None:
    """Configure the root logger for the application.

    Safe to call more than once: existing root handlers are replaced.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (any case).
                   Defaults to TODOBI_LOG_LEVEL, then INFO.
        use_textual_handler: Send records to Textual's devtools console
                             instead of the log file.

    Example:
        >>> setup_logging()
        >>> setup_logging(log_level="debug")
    """
    level_name = _resolve_level(log_level)
    level = logging.getLevelName(level_name)

    handler = _make_handler(use_textual_handler)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root_logger = logging.getLogger()
    for old_handler in list(root_logger.handlers):
        root_logger.removeHandler(old_handler)
        old_handler.close()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    destination = "textual" if use_textual_handler else str(LOG_FILE)
    logging.getLogger(__name__).info(
        f"Logging initialized: level={level_name}, destination={destination}"
    )


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; pass ``__name__``.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Pull started")
    """
    return logging.getLogger(name)
