"""Configuration settings models using Pydantic."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class BatchSettings(BaseModel):
    """Batch execution configuration."""

    concurrency_limit: int = Field(
        default=0,
        ge=0,
        description="Maximum tasks running at once (0 = one worker per task)",
    )
    auto_acknowledge: bool = Field(
        default=False,
        description="Acknowledge callback-less tasks as soon as a worker finishes them",
    )
    wait_timeout: float | None = Field(
        default=None,
        gt=0.0,
        description="Seconds a caller waits for the batch predicate (None = forever)",
    )

    def resolve_limit(self, limit: int | None) -> int | None:
        """Return the explicit limit, falling back to the configured one."""
        if limit is not None:
            return limit
        return self.concurrency_limit or None


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    file: str | None = Field(
        default=None,
        description="Log file path (None = console only)",
    )
    rotation: str = Field(
        default="10 MB",
        description="Log rotation size",
    )
    retention: str = Field(
        default="7 days",
        description="Log retention period",
    )
    compression: bool = Field(
        default=True,
        description="Whether to compress old logs",
    )
    console_format: str = Field(
        default=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[name]}</cyan> | "
            "<level>{message}</level>"
        ),
        description="Console log format",
    )
    file_format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]} | {message}",
        description="File log format (the file always records DEBUG)",
    )


class Settings(BaseModel):
    """Main configuration settings."""

    version: str = Field(
        default="1.0",
        description="Configuration version",
    )
    batch: BatchSettings = Field(default_factory=BatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate configuration version."""
        supported_versions = ["1.0"]
        if v not in supported_versions:
            raise ValueError(f"Unsupported config version: {v}. Supported: {supported_versions}")
        return v
