"""Tests for logger setup driven by the configuration classes."""

import logging
import logging.handlers

from superres.config import ProductionConfig, TestingConfig
from superres.logger import setup_logger


def _reset(name):
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_testing_config_logs_to_console_only():
    name = "superres.tests.console_only"
    _reset(name)

    logger = setup_logger(name, TestingConfig)

    assert logger.level == logging.DEBUG
    assert not any(
        isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers
    )
    _reset(name)


def test_file_handler_uses_configured_rotation(tmp_path, monkeypatch):
    monkeypatch.setattr(ProductionConfig, "LOGS_DIR", tmp_path)
    monkeypatch.setattr(ProductionConfig, "LOG_TO_FILE", True)
    monkeypatch.setattr(ProductionConfig, "LOG_MAX_BYTES", 2048)
    monkeypatch.setattr(ProductionConfig, "LOG_BACKUP_COUNT", 2)
    name = "superres.tests.rotating"
    _reset(name)

    logger = setup_logger(name, ProductionConfig)

    file_handlers = [
        h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
    ]
    assert logger.level == logging.INFO
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == 2048
    assert file_handlers[0].backupCount == 2
    assert (tmp_path / "superres_tests_rotating.log").exists()
    _reset(name)


def test_handlers_are_not_duplicated():
    name = "superres.tests.duplicates"
    _reset(name)

    first = setup_logger(name, TestingConfig)
    count = len(first.handlers)
    second = setup_logger(name, TestingConfig)

    assert first is second
    assert len(second.handlers) == count
    _reset(name)
