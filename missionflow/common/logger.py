"""Logging for missionflow.

Every module logs through ``get_logger(component)``, which hangs off the
``missionflow`` root logger. The application configures that root once at
startup with ``configure_logging``; components inherit its handlers.
"""

import logging
import logging.handlers
import os
from typing import Optional


ROOT_LOGGER = "missionflow"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
ISO_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _resolve_level(level: str) -> int:
    name = level.strip().upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LOG_LEVELS)}")
    return getattr(logging, name)


def _rotating_file_handler(log_dir: str, name: str, max_bytes: int, backup_count: int) -> logging.Handler:
    os.makedirs(log_dir, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, f"{name}.log"),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def setup_logger(
    name: str = ROOT_LOGGER,
    log_dir: str = "./logs",
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    file_logging: bool = True,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Attach console and rotating file handlers to a logger.

    Calling it again for a configured logger only updates the level.

    Args:
        name: Logger name, the ``missionflow`` root by default
        log_dir: Directory for ``<name>.log``
        level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL (any case)
        log_format: Record format, ``DEFAULT_FORMAT`` if omitted
        date_format: Timestamp format, ISO 8601 if omitted
        file_logging: Write to a rotating file
        console_logging: Write to stderr
        max_bytes: Size at which the file rotates
        backup_count: Rotated files kept

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(log_format or DEFAULT_FORMAT, datefmt=date_format or ISO_DATE_FORMAT)

    handlers = []
    if file_logging:
        handlers.append(_rotating_file_handler(log_dir, name, max_bytes, backup_count))
    if console_logging:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def configure_logging(settings) -> logging.Logger:
    """Configure the ``missionflow`` root from application settings."""
    return setup_logger(
        ROOT_LOGGER,
        log_dir=settings.log_dir,
        level=settings.log_level,
        file_logging=settings.file_logging,
    )


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("approval")`` → ``missionflow.approval``."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
