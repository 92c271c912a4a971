"""File-based debug logging for native messaging hosts.

stdout carries frames, so hosts cannot log there. This
attaches a file handler to the package logger instead.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from pathlib import Path

LOGGER_NAME: Final = "nativemsg"
MAX_LOG_LINES: Final = 1000
LOG_FORMAT: Final = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT: Final = "%Y-%m-%dT%H:%M:%S"


def _truncate_log(log_file: Path, max_lines: int) -> None:
    """Keep only the last max_lines lines of log_file."""
    try:
        lines = log_file.read_text().splitlines()
        if len(lines) > max_lines:
            log_file.write_text("\n".join(lines[-max_lines:]) + "\n")
    except OSError:
        pass


def setup_debug_logging(
    log_file: Path,
    *,
    level: int = logging.DEBUG,
    max_lines: int = MAX_LOG_LINES,
) -> logging.Logger:
    """Send nativemsg log records to log_file.

    Truncates an existing log to its last max_lines lines
    on startup. Calling it again is a no-op once a handler
    is attached. If the log directory cannot be written,
    the logger is returned without a handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        if log_file.exists():
            _truncate_log(log_file, max_lines)

        handler = logging.FileHandler(str(log_file))
        handler.setLevel(level)
        handler.setFormatter(
            logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT),
        )
        logger.addHandler(handler)
    except OSError:
        # Continue without logs
        pass

    return logger
