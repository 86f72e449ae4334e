# tests/test_logging.py
"""
Tests for the package logger helpers.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from fudgeproto.logging_config import PACKAGE_LOGGER, get_logger, setup_logging


class TestGetLogger:

    def test_package_modules_keep_their_name(self):
        assert get_logger("fudgeproto.codegen.registry").name == "fudgeproto.codegen.registry"
        assert get_logger(PACKAGE_LOGGER).name == PACKAGE_LOGGER

    def test_foreign_names_are_nested(self):
        assert get_logger("generated").name == "fudgeproto.generated"


class TestSetupLogging:

    def test_single_rich_handler(self):
        setup_logging(logging.INFO, Console(stderr=True))
        logger = setup_logging("debug")
        handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        setup_logging(logging.WARNING)
