#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logging setup for the bootstrap entry points.

A container entrypoint talks to two audiences: progress narration goes to
stdout, warnings and errors go to stderr so they stand out in
``docker logs``. An optional log file receives everything.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from initdb.config_models import SYMBOLS_DEFAULT

DETAILED_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"
SIMPLE_LOG_FORMAT_WITH_PREFIX_PLACEHOLDER = "{log_prefix}%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(message)s"
SIMPLE_LOG_FORMAT_NO_PREFIX = (
    "%(asctime)s - %(levelname)s - %(symbol)s %(name)s - %(message)s"
)
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Level number -> (symbols key, fallback symbol)
_LEVEL_SYMBOLS: Dict[int, tuple] = {
    logging.DEBUG: ("debug", "🐛"),
    logging.INFO: ("info", "ℹ️"),
    logging.WARNING: ("warning", "⚠️"),
    logging.ERROR: ("error", "❌"),
    logging.CRITICAL: ("critical", "🔥"),
}


class SymbolFormatter(logging.Formatter):
    """
    A formatter exposing a per-level ``%(symbol)s`` field.
    """

    def __init__(
        self, fmt=None, datefmt=None, style="%", validate=True, symbols=None
    ):
        super().__init__(fmt, datefmt, style, validate)
        self.symbols = symbols or SYMBOLS_DEFAULT

    def format(self, record):
        key, fallback = _LEVEL_SYMBOLS.get(record.levelno, (None, ""))
        record.symbol = self.symbols.get(key, fallback) if key else fallback
        return super().format(record)


class MaxLevelFilter(logging.Filter):
    """Lets through records strictly below ``max_level``."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def _resolve_format(
    log_format_str: Optional[str], log_prefix: Optional[str]
) -> str:
    prefix = (
        (log_prefix.strip() + " ") if log_prefix and log_prefix.strip() else ""
    )
    if log_format_str:
        if "{log_prefix}" in log_format_str:
            return log_format_str.format(log_prefix=prefix)
        return prefix + log_format_str
    if prefix:
        return SIMPLE_LOG_FORMAT_WITH_PREFIX_PLACEHOLDER.format(
            log_prefix=prefix
        )
    return SIMPLE_LOG_FORMAT_NO_PREFIX


def _console_handlers() -> List[logging.Handler]:
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    return [stdout_handler, stderr_handler]


def _file_handler(log_file: str) -> Optional[logging.Handler]:
    try:
        log_file_path = Path(log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_file_path, mode="a")
    except Exception as e:
        # Logging is not configured yet, stderr is the only channel.
        print(
            f"Warning: Could not create file handler for log file {log_file}: {e}",
            file=sys.stderr,
        )
        return None


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
    log_format_str: Optional[str] = None,
    log_prefix: Optional[str] = None,
) -> None:
    """
    Configures the root logger, replacing any handlers already attached.

    Parameters:
    log_level: int
        The logging level to configure. Defaults to logging.INFO.
    log_file: Optional[str]
        Also append the log to this file. Defaults to None.
    log_to_console: bool
        Whether to log to stdout/stderr. The console is used anyway when no
        other handler could be set up. Defaults to True.
    log_format_str: Optional[str]
        A custom log format string. May contain a ``{log_prefix}`` placeholder. Defaults to None.
    log_prefix: Optional[str]
        An optional string to prefix log messages with. Defaults to None.

    Returns:
    None
    """
    handlers: List[logging.Handler] = []
    if log_file:
        file_handler = _file_handler(log_file)
        if file_handler is not None:
            handlers.append(file_handler)
    if log_to_console or not handlers:
        handlers.extend(_console_handlers())

    final_format_str = _resolve_format(log_format_str, log_prefix)
    formatter = SymbolFormatter(
        fmt=final_format_str,
        datefmt=LOG_DATE_FORMAT,
    )
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    logging.getLogger(__name__).debug(
        f"Logging configured. Level: {logging.getLevelName(log_level)}. Format: '{final_format_str}'"
    )
