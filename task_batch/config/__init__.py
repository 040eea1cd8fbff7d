"""Configuration management module."""

from task_batch.config.loader import get_settings, load_config, reset_settings
from task_batch.config.settings import BatchSettings, LoggingSettings, Settings

__all__ = [
    "Settings",
    "BatchSettings",
    "LoggingSettings",
    "load_config",
    "get_settings",
    "reset_settings",
]
