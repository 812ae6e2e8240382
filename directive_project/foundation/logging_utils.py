"""Logging helpers that avoid heavy dependencies."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def parse_log_level(value: str | int | None, *, default: int = logging.INFO) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"Invalid log level: {value!r}")
    if isinstance(value, int):
        return value
    name = str(value).strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {value!r}")
    return level


def setup_logger(
    name: str,
    *,
    level: str | int | None = None,
    log_file: str | None = None,
) -> logging.Logger:
    """
    Configure a named logger with a stream handler and, optionally, a UTF-8 file
    handler. Existing handlers on that logger are replaced.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(parse_log_level(level))
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        directory = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    logger.debug("Logging initialized for %s", name)
    if log_file:
        logger.debug("Log file: %s", log_file)
    return logger
