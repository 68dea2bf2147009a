"""Application-wide logging configuration utilities."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from daily_updates import app_paths

_LOG_PATH: Optional[Path] = None
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: int = logging.INFO, *, log_path: Optional[Path] = None) -> Path:
    """Configure logging to write to the Daily Updates log file.

    Parameters
    ----------
    level:
        The minimum logging level for the root logger. ``logging.INFO`` is used
        by default which records every write attempt and fallback without the
        per-row parsing chatter logged at ``DEBUG``.
    log_path:
        Optional explicit location for the log file. The application data
        directory is used when omitted.

    Returns
    -------
    pathlib.Path
        The path to the log file.
    """

    global _LOG_PATH

    root_logger = logging.getLogger()
    if _LOG_PATH is not None and log_path is None:
        root_logger.setLevel(min(root_logger.level, level))
        return _LOG_PATH

    target = Path(log_path) if log_path is not None else app_paths.logs_path("daily_updates.log")
    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        target.touch(exist_ok=True)
    except OSError:
        pass

    if not root_logger.handlers:
        root_logger.setLevel(level)
    else:
        root_logger.setLevel(min(root_logger.level, level))

    already_configured = any(
        isinstance(handler, logging.FileHandler)
        and getattr(handler, "baseFilename", None) == os.path.abspath(target)
        for handler in root_logger.handlers
    )
    if not already_configured:
        file_handler = logging.FileHandler(target, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root_logger.addHandler(file_handler)

    _LOG_PATH = target
    root_logger.debug("Logging configured. Writing to %s", target)
    return target


def enable_console_logging(level: int = logging.DEBUG) -> None:
    """Echo log records to stderr, used by the ``--verbose`` CLI flag."""

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if type(handler) is logging.StreamHandler:
            handler.setLevel(level)
            break
    else:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root_logger.addHandler(stream_handler)
    root_logger.setLevel(min(root_logger.level, level))


def get_log_path() -> Path:
    """Return the path to the Daily Updates log file, configuring logging if needed."""

    if _LOG_PATH is None:
        return configure_logging()
    return _LOG_PATH


__all__ = ["configure_logging", "enable_console_logging", "get_log_path"]
