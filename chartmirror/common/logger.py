"""Logging infrastructure for chartmirror.

Mirror runs report tolerated failures through a logger handed to them at
construction; this module builds those loggers with console output,
optional rotating log files, and ISO 8601 timestamps.
"""

import logging
import logging.handlers
import os
from typing import Optional

DEFAULT_LOGGER_NAME = "chartmirror"
DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    log_dir: str = "/var/log/chartmirror",
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    file_logging: bool = False,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Set up a logger with console and (optionally) file handlers.

    Args:
        name: Logger name
        log_dir: Directory for log files, used only with file_logging
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string
        date_format: Custom date format string (ISO 8601 by default)
        file_logging: Write to ``<log_dir>/<name>.log`` with rotation
        console_logging: Write to stderr
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated log files to keep

    Returns:
        Configured logger instance

    Raises:
        ValueError: If level is not a known logging level name
    """
    logger = logging.getLogger(name)

    level_upper = level.upper()
    if level_upper not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    logger.setLevel(getattr(logging, level_upper))

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        log_format or DEFAULT_LOG_FORMAT,
        datefmt=date_format or DEFAULT_DATE_FORMAT,
    )

    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Get an existing logger by name."""
    return logging.getLogger(name)


def level_for(verbose: bool, level: str = "INFO") -> str:
    """Return the effective level name, forcing DEBUG when verbose."""
    return "DEBUG" if verbose else level
