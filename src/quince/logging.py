"""Structured logging helpers for Quince."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import ConfigurationError, LoggingConfig

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
MAIN_LOG_NAME = "quince.log"
DEBUG_LOG_NAME = "debug.log"

# Thresholds of the integer ``debug`` option.
FLOW_DEBUG = 1
DOCUMENT_DEBUG = 5
PREDICTOR_DEBUG = 10


class ConsoleFormatter(logging.Formatter):
    """Formatter that prepends colourised level symbols."""

    SYMBOLS: dict[int, tuple[str, str]] = {
        logging.DEBUG: ("D", "\x1b[36m"),
        logging.INFO: ("I", "\x1b[32m"),
        logging.WARNING: ("!", "\x1b[33m"),
        logging.ERROR: ("X", "\x1b[31m"),
        logging.CRITICAL: ("X", "\x1b[35m"),
    }

    RESET = "\x1b[0m"

    def __init__(self, use_color: bool) -> None:
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        symbol, color = self.SYMBOLS.get(record.levelno, ("?", "\x1b[37m"))
        base_message = super().format(record)
        if self.use_color:
            return f"{color}{symbol}{self.RESET} {base_message}"
        return f"{symbol} {base_message}"


def configure_logging(
    logging_config: LoggingConfig,
    log_dir: Path | None = None,
    *,
    debug: int = 0,
) -> None:
    """Initialise logging handlers.

    Console output is always installed. File handlers are only added when a
    log directory is given. A non-zero ``debug`` option lowers the root level
    far enough for the messages it enables.
    """

    handlers: list[logging.Handler] = [_build_console_handler()]

    if log_dir is not None:
        directory = log_dir.expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(_build_file_handler(directory / MAIN_LOG_NAME, level=logging.INFO))
        if logging_config.debug_file:
            handlers.append(_build_file_handler(directory / DEBUG_LOG_NAME, level=logging.DEBUG))

    level = _level_from_string(logging_config.level)
    if debug:
        level = min(level, debug_level_for(debug))

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True,
    )


def debug_level_for(debug: int) -> int:
    """Map the integer ``debug`` option onto the most verbose level it enables."""

    if debug >= DOCUMENT_DEBUG:
        return logging.DEBUG
    if debug >= FLOW_DEBUG:
        return logging.INFO
    return logging.WARNING


def _build_file_handler(path: Path, level: int) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=5)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _build_console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(ConsoleFormatter(_stream_supports_color(handler)))
    return handler


def _stream_supports_color(handler: logging.Handler) -> bool:
    stream = getattr(handler, "stream", None)
    return bool(getattr(stream, "isatty", lambda: False)())


def _level_from_string(level: str) -> int:
    normalized = level.strip().upper()
    mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    try:
        return mapping[normalized]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown log level: {level}") from exc


__all__ = [
    "DOCUMENT_DEBUG",
    "FLOW_DEBUG",
    "PREDICTOR_DEBUG",
    "configure_logging",
    "debug_level_for",
]
