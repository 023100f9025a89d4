"""Tests for logging setup."""

from __future__ import annotations

import logging

import pytest

from brsremote.config.settings import LoggingConfig
from brsremote.utils.logging import setup_logging


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger("brsremote")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    def test_level_and_handlers(self, tmp_path) -> None:
        log_file = tmp_path / "brsremote.log"
        setup_logging(LoggingConfig(level="debug", file=str(log_file)))

        logger = logging.getLogger("brsremote")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2

        logging.getLogger("brsremote.clients.console").debug("reconnecting")
        for handler in logger.handlers:
            handler.flush()
        assert "reconnecting" in log_file.read_text()

    def test_repeated_setup_replaces_handlers(self) -> None:
        setup_logging()
        setup_logging()
        logger = logging.getLogger("brsremote")
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO
