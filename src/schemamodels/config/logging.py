"""Logging configuration for schemamodels."""

import logging
import sys
from pathlib import Path
from typing import Optional
from .settings import get_settings

ROOT_LOGGER_NAME = "schemamodels"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Configure logging for the library.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for file logging
        format_string: Optional custom format string
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper())
    log_file_path = log_file or settings.log_file

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handlers: list = [logging.StreamHandler(sys.stdout)]
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        setup_logging()

    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
