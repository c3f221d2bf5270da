"""
Logging for the grader: one named logger writing to a rotating file and stdout.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from essay_grader.core.config import LoggingConfig, get_config, get_log_path

LOGGER_NAME = "essay_grader"

_logger: Optional[logging.Logger] = None


def _build_handlers(log_config: LoggingConfig) -> List[logging.Handler]:
    rotating = RotatingFileHandler(
        get_log_path(),
        maxBytes=log_config.max_size * 1024 * 1024,
        backupCount=log_config.backup_count,
        encoding="utf-8",
    )
    return [rotating, logging.StreamHandler(sys.stdout)]


def setup_logging() -> logging.Logger:
    """
    Configure the ``essay_grader`` logger from the logging config section.

    Safe to call more than once; later calls return the configured logger.
    """
    global _logger

    if _logger is not None:
        return _logger

    log_config = get_config().logging
    level = getattr(logging, log_config.level.upper(), logging.INFO)
    formatter = logging.Formatter(log_config.format)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    for handler in _build_handlers(log_config):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the grader logger, configuring it on first use."""
    return _logger or setup_logging()
