"""Data models module."""

from task_batch.models.task import (
    NO_CACHED_VALUE,
    NO_RESULT,
    BatchSummary,
    TaskDefinition,
    TaskStatus,
)

__all__ = [
    "TaskStatus",
    "TaskDefinition",
    "BatchSummary",
    "NO_RESULT",
    "NO_CACHED_VALUE",
]
