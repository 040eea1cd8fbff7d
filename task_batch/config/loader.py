"""Configuration loader module."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from task_batch.config.settings import Settings
from task_batch.exceptions import ConfigurationError

ENV_PREFIX = "TASK_BATCH_"
CONFIG_PATH_ENV = "TASK_BATCH_CONFIG"


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge ``override`` into a copy of ``base``, recursing into nested dicts."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file.

    Args:
        path: Path to YAML file

    Returns:
        Parsed YAML content as dictionary

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML file {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {path}")
    return content


def _coerce(raw: str, like: Any) -> Any:
    """Convert an environment string to the type of the value it replaces."""
    if isinstance(like, bool):
        return raw.lower() in ("true", "1", "yes")
    for kind in (int, float):
        if isinstance(like, kind):
            try:
                return kind(raw)
            except ValueError:
                return raw
    return raw


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``TASK_BATCH_<SECTION>__<KEY>`` environment overrides.

    Example:
        TASK_BATCH_BATCH__CONCURRENCY_LIMIT=4
        TASK_BATCH_LOGGING__LEVEL=DEBUG

    Args:
        config: Base configuration dictionary

    Returns:
        Configuration with environment overrides applied
    """
    result = _deep_merge(config, {})

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX) or key == CONFIG_PATH_ENV:
            continue

        *sections, leaf = key[len(ENV_PREFIX) :].lower().split("__")

        target = result
        for section in sections:
            target = target.setdefault(section, {})
            if not isinstance(target, dict):
                break
        else:
            target[leaf] = _coerce(value, target[leaf]) if leaf in target else value

    return result


def load_config(config_path: str | Path | None = None) -> Settings:
    """Load configuration from file with defaults and environment overrides.

    Loading order (later overrides earlier):
    1. Default configuration
    2. Configuration file (if provided)
    3. Environment variables

    Args:
        config_path: Optional path to configuration file

    Returns:
        Validated Settings object

    Raises:
        ConfigurationError: If configuration is invalid
    """
    config = Settings().model_dump()

    if config_path:
        config = _deep_merge(config, _load_yaml_file(Path(config_path)))

    config = _apply_env_overrides(config)

    try:
        return Settings.model_validate(config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    The configuration file is taken from ``TASK_BATCH_CONFIG`` or, failing
    that, from ``task_batch.yaml`` in the working directory.

    Returns:
        Cached Settings object
    """
    config_path = os.environ.get(CONFIG_PATH_ENV)

    if not config_path:
        for location in (Path("task_batch.yaml"), Path.home() / ".task_batch" / "config.yaml"):
            if location.exists():
                config_path = str(location)
                break

    return load_config(config_path)


def reset_settings() -> None:
    """Clear the settings cache so the next get_settings() call reloads."""
    get_settings.cache_clear()
