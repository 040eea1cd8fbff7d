"""Logging configuration using loguru.

Sinks are always installed from a ``LoggingSettings`` model: ``setup_logger``
builds one from keyword arguments, ``configure_from_settings`` takes the
``logging`` section of the loaded settings.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

from task_batch.config.settings import LoggingSettings

# Name shown for records logged without a bound module name
ROOT_LOGGER_NAME = "task_batch"

_logger_configured = False


def _install_sinks(config: LoggingSettings) -> Any:
    """Replace every loguru sink with the ones described by ``config``."""
    global _logger_configured

    logger.remove()
    logger.configure(extra={"name": ROOT_LOGGER_NAME})

    logger.add(
        sys.stderr,
        level=config.level,
        format=config.console_format,
        colorize=True,
    )

    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(log_path),
            level="DEBUG",
            format=config.file_format,
            rotation=config.rotation,
            retention=config.retention,
            compression="zip" if config.compression else None,
            encoding="utf-8",
        )

    _logger_configured = True
    return logger


def setup_logger(
    log_level: str = "INFO",
    log_file: str | Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    compression: bool = True,
    console_format: str | None = None,
    file_format: str | None = None,
) -> Any:
    """Configure the logger from explicit values.

    Args:
        log_level: Console level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (None for console only)
        rotation: Log rotation size (e.g., "10 MB", "1 day")
        retention: Log retention period (e.g., "7 days", "1 week")
        compression: Whether to compress rotated logs
        console_format: Console format (LoggingSettings default when None)
        file_format: File format (LoggingSettings default when None)

    Returns:
        Configured logger instance
    """
    formats = {"console_format": console_format, "file_format": file_format}
    config = LoggingSettings(
        level=log_level.upper(),
        file=str(log_file) if log_file else None,
        rotation=rotation,
        retention=retention,
        compression=compression,
        **{key: value for key, value in formats.items() if value},
    )
    return _install_sinks(config)


def configure_from_settings(settings: Any) -> Any:
    """Configure the logger from the ``logging`` section of a Settings object."""
    return _install_sinks(settings.logging)


def get_logger(name: str | None = None) -> Any:
    """Get a logger, bound to ``name`` when given.

    The default sinks are installed on first use.
    """
    if not _logger_configured:
        _install_sinks(LoggingSettings())

    if name:
        return logger.bind(name=name)
    return logger
