# File: snaplog/logger.py
"""
Unified logging for snaplog.

- Console: colorized, INFO by default (DEBUG if DEBUG_MODE = True in config.py)
- File: Timed rotating logs (daily), keeps last 7 days, full DEBUG detail
- Safe to call from any module without duplicating handlers

Parsing components never call this themselves; they take a ``logging.Logger``
from the caller and fall back to ``get_logger(__name__)``.
"""

from __future__ import annotations
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import colorlog

from config import LOG_DIR, DEBUG_MODE


# Internal module-level guard so we don't add handlers twice
_INITIALIZED = False

ROOT_LOGGER_NAME = "snaplog"


def _ensure_log_dir() -> Path:
    log_dir = Path(LOG_DIR).expanduser().resolve()
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _build_console_handler() -> logging.Handler:
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)
    ch.set_name("console")
    ch.setFormatter(colorlog.ColoredFormatter(
        fmt="%(log_color)s%(asctime)s | %(levelname)-7s | %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        },
    ))
    return ch


def _build_file_handler(log_path: Path) -> logging.Handler:
    fh = TimedRotatingFileHandler(
        filename=str(log_path / "snaplog.log"),
        when="midnight",
        interval=1,
        backupCount=7,
        encoding="utf-8",
        delay=True,              # don't create file until first log
        utc=False
    )
    fh.setLevel(logging.DEBUG)   # always keep full detail in file
    fh.set_name("file")
    fh.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(filename)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    return fh


def setup_logging() -> None:
    """
    Idempotent setup: safe to call multiple times.
    Attaches console + rotating file handlers to the package logger.
    """
    global _INITIALIZED
    if _INITIALIZED:
        return

    log_dir = _ensure_log_dir()
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG)  # let handlers filter levels

    # Remove any pre-existing handlers to avoid duplicates (e.g., when reloading)
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(_build_console_handler())
    root.addHandler(_build_file_handler(log_dir))

    _INITIALIZED = True


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Returns a logger under the ``snaplog`` hierarchy.
    Ensures logging is configured before returning the logger.
    """
    setup_logging()
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
