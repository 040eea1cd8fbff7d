"""Utility modules for task_batch."""

from task_batch.utils.logger import configure_from_settings, get_logger, setup_logger

__all__ = [
    "setup_logger",
    "get_logger",
    "configure_from_settings",
]
