"""
Tests for the package logging setup.
"""

import logging

import pytest

from pentagrammap.logging_config import PACKAGE_LOGGER, setup_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)


class TestSetupLogging:
    """Handlers attached to the package logger."""

    def test_stdout_only(self, package_logger):
        setup_logging(logging.DEBUG)
        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0], logging.StreamHandler)

    def test_repeated_calls_replace_handlers(self, package_logger):
        setup_logging()
        setup_logging()
        assert len(package_logger.handlers) == 1

    def test_file_receives_module_records(self, package_logger, tmp_path):
        log_file = tmp_path / "run.log"
        setup_logging(logging.INFO, str(log_file))
        assert len(package_logger.handlers) == 2
        logging.getLogger("pentagrammap.analysis.base_map").info("reset")
        for handler in package_logger.handlers:
            handler.flush()
        assert "pentagrammap.analysis.base_map: reset" in log_file.read_text(encoding="utf-8")
