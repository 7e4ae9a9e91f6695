"""
Loguru setup shared by the aggregator, the scheduler and the command line tool.

Modules log through ``get_logger(__name__)``; the bound name shows up as
``{extra[name]}`` in custom formats. Output goes to stderr so that ``feed.py show``
can print a feed on stdout, and optionally to a rotating file.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

from subscription_feed.config import get_config


def _add_console_handler(level: str, format: str) -> int:
    return _logger.add(
        sys.stderr,
        format=format,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=True,
    )


def _add_file_handler(log_file: str, level: str, format: str, rotation: str, retention: str) -> int:
    """Write to a rotating, zipped log file.

    Collectors on the fetch pool and scheduler jobs log from several threads at
    once, so records are queued and written by loguru's worker.
    """
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    return _logger.add(
        log_file,
        format=format,
        level=level,
        rotation=rotation,
        retention=retention,
        compression="zip",
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=True,
    )


def setup_logger(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    rotation: Optional[str] = None,
    retention: Optional[str] = None,
    format: Optional[str] = None,
) -> list[int]:
    """Replace loguru's handlers with the ones configured for this application.

    Values left out come from ``LoggingConfig`` (``LOG_*`` variables).

    Args:
        level: Minimum level written by both handlers
        log_file: Log file path; passing one enables the file handler even
            when ``file_enabled`` is off
        rotation: When the log file rotates (e.g. "10 MB")
        retention: How long rotated files are kept (e.g. "14 days")
        format: Record format for both handlers

    Returns:
        Ids of the added handlers, usable with ``logger.remove``
    """
    log_config = get_config().logging

    level = level or log_config.level
    format = format or log_config.format
    file_enabled = log_config.file_enabled or log_file is not None

    _logger.remove()

    handler_ids = []
    if log_config.console_enabled:
        handler_ids.append(_add_console_handler(level, format))

    if file_enabled:
        handler_ids.append(
            _add_file_handler(
                log_file or log_config.file_path,
                level,
                format,
                rotation or log_config.rotation,
                retention or log_config.retention,
            )
        )

    return handler_ids


def get_logger(name: Optional[str] = None):
    """Return the shared logger, bound to a module name if one is given."""
    if name:
        return _logger.bind(name=name)
    return _logger


logger = _logger

__all__ = [
    "setup_logger",
    "get_logger",
    "logger",
]
