"""
Logging configuration for the client.

Provides structured logging with configurable levels and output formats.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import get_config

ROOT_LOGGER_NAME = "mmorg"


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    log_to_console: bool = True
) -> logging.Logger:
    """
    Configure logging for the client.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR). Uses config if not specified.
        log_file: Optional path to log file
        log_to_console: Whether to log to console

    Returns:
        The root logger for the client
    """
    if log_level is None:
        log_level = get_config().debug.log_level

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific module."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_with_context(logger: logging.Logger, level: int, msg: str, **context) -> None:
    """Log a message with key=value context appended."""
    context_str = " | ".join(f"{k}={v}" for k, v in context.items())
    if context_str:
        msg = f"{msg} [{context_str}]"

    logger.log(level, msg)
