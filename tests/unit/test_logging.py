from __future__ import annotations

import logging

import pytest

from quince.config import ConfigurationError, LoggingConfig
from quince.logging import (
    DEBUG_LOG_NAME,
    MAIN_LOG_NAME,
    ConsoleFormatter,
    configure_logging,
    debug_level_for,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def test_debug_level_for_thresholds() -> None:
    assert debug_level_for(0) == logging.WARNING
    assert debug_level_for(1) == logging.INFO
    assert debug_level_for(4) == logging.INFO
    assert debug_level_for(5) == logging.DEBUG
    assert debug_level_for(10) == logging.DEBUG


def test_console_formatter_symbols() -> None:
    record = logging.LogRecord("quince", logging.WARNING, __file__, 1, "careful", None, None)

    assert ConsoleFormatter(use_color=False).format(record) == "! careful"
    assert ConsoleFormatter(use_color=True).format(record).endswith("careful")


def test_configure_logging_writes_files(tmp_path, restore_root_logger) -> None:
    configure_logging(LoggingConfig(level="debug", debug_file=True), log_dir=tmp_path / "logs")

    logging.getLogger("quince.test").debug("hidden detail")
    logging.getLogger("quince.test").info("visible progress")
    for handler in restore_root_logger.handlers:
        handler.flush()

    main_log = (tmp_path / "logs" / MAIN_LOG_NAME).read_text(encoding="utf-8")
    debug_log = (tmp_path / "logs" / DEBUG_LOG_NAME).read_text(encoding="utf-8")
    assert "visible progress" in main_log
    assert "hidden detail" not in main_log
    assert "hidden detail" in debug_log


def test_configure_logging_rejects_unknown_level(restore_root_logger) -> None:
    with pytest.raises(ConfigurationError):
        configure_logging(LoggingConfig(level="chatty"))


def test_debug_option_lowers_root_level(restore_root_logger) -> None:
    configure_logging(LoggingConfig(level="warning"), debug=1)
    assert restore_root_logger.level == logging.INFO

    configure_logging(LoggingConfig(level="warning"), debug=5)
    assert restore_root_logger.level == logging.DEBUG

    configure_logging(LoggingConfig(level="error"))
    assert restore_root_logger.level == logging.ERROR
