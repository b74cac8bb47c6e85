"""
Logging configuration for the SuperRes package
"""

import logging
import logging.handlers
from typing import Optional

from superres.config import Config, get_config

config = get_config()


def _level_for(settings: Config) -> int:
    return getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)


def setup_logger(name: str, settings: Optional[Config] = None) -> logging.Logger:
    """
    Set up logger with console and (optionally) rotating file handlers

    Level, format and file rotation come from the active configuration
    class, so ``TestingConfig`` logs at DEBUG to the console only.

    Args:
        name: Logger name (usually __name__)
        settings: Configuration to read; defaults to the environment's

    Returns:
        Configured logger instance
    """
    settings = settings or config
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    log_level = _level_for(settings)
    logger.setLevel(log_level)

    formatter = logging.Formatter(settings.LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        log_file = settings.LOGS_DIR / f"{name.replace('.', '_')}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
