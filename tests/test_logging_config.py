"""Tests for the package logger setup."""

import logging

from keyword_atlas.logging_config import LOGGER_NAME, setup_logging


class TestSetupLogging:

    def teardown_method(self):
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_configures_package_logger(self):
        logger = setup_logging(logging.DEBUG)
        assert logger.name == "keyword_atlas"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_module_loggers_share_configuration(self, tmp_path):
        log_file = tmp_path / "atlas.log"
        setup_logging(logging.INFO, str(log_file))

        logging.getLogger("keyword_atlas.graph").info("Aggregated 3 keywords")
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            handler.flush()

        text = log_file.read_text(encoding="utf-8")
        assert "keyword_atlas.graph - INFO - Aggregated 3 keywords" in text
