"""Logging setup shared by the analyzer, emitters and CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "exposify"


class _ConsoleFormatter(logging.Formatter):
    """Prefix every line with the tool name; show the level only when it is not INFO."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno == logging.INFO:
            return f"[{_LOGGER_NAME}] {message}"
        return f"[{_LOGGER_NAME}] {record.levelname} {message}"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``exposify`` or one of its children (``exposify.analyzer``...)."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route exposify records to stdout and, optionally, a full debug trace file.

    The console shows DEBUG records (unresolved types, skipped details) only when
    ``verbose`` is set. The file sink always records everything.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(_ConsoleFormatter())
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        trace = logging.FileHandler(log_file, encoding="utf-8")
        trace.setLevel(logging.DEBUG)
        trace.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(trace)

    logger.setLevel(logging.DEBUG if log_file is not None else console_level)
    return logger


__all__ = ["configure_logging", "get_logger"]
