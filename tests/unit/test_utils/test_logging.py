"""Tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from rexec.config.settings import LoggingConfig
from rexec.utils.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_rexec_logger():
    logger = logging.getLogger("rexec")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


class TestSetupLogging:
    def test_defaults(self) -> None:
        setup_logging()
        logger = logging.getLogger("rexec")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_file_handler_and_level(self, tmp_path: Path) -> None:
        log_file = tmp_path / "rexec.log"
        setup_logging(LoggingConfig(level="debug", file=str(log_file)))
        logger = logging.getLogger("rexec")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        logging.getLogger("rexec.server").debug("hello from the server")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from the server" in log_file.read_text()

    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("rexec").handlers) == 1
