"""Task models for batch execution."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from task_batch.exceptions import TaskDefinitionError


class TaskStatus(str, Enum):
    """Status of one of a task's two status slots."""

    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class _NoCachedValue:
    """Marker returned by a cache lookup that finds nothing."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_CACHED_VALUE"


# Result of re-running an already fulfilled task that is not cached
NO_RESULT = None
NO_CACHED_VALUE = _NoCachedValue()


class TaskDefinition(BaseModel):
    """A named asynchronous operation registered into a batch."""

    name: str = Field(description="Unique task name within a batch")
    operation: Callable[..., Any] | None = Field(
        default=None,
        description="Callable returning an awaitable (or a plain value)",
    )
    receiver: Any = Field(
        default=None,
        description="Receiver passed as first positional argument when set",
    )
    args: list[Any] = Field(
        default_factory=list,
        description="Ordered positional arguments for the operation",
    )
    kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Keyword arguments for the operation",
    )
    cached: bool = Field(
        default=False,
        description="Keep the last fulfilled response and serve it on re-runs",
    )
    validator: Callable[[Any], Any] | None = Field(
        default=None,
        description="Predicate over a copy of the response; falsy rejects it",
    )
    on_success: Callable[[Any], Any] | None = Field(
        default=None,
        description="Transforms the response of a fulfilled task",
    )
    on_failure: Callable[[Any], Any] | None = Field(
        default=None,
        description="Transforms the error of a rejected task",
    )
    on_settled: Callable[[Any], Any] | None = Field(
        default=None,
        description="Runs after on_success/on_failure whatever the outcome",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Task names must be non-empty."""
        if not v or not v.strip():
            raise ValueError("Task name cannot be empty")
        return v

    @property
    def has_outcome_callback(self) -> bool:
        """Whether the task acknowledges itself through on_success/on_failure."""
        return self.on_success is not None or self.on_failure is not None

    def invoke(self) -> Any:
        """Call the operation with the configured receiver and arguments.

        Raises:
            TaskDefinitionError: If the task has no operation
        """
        if self.operation is None:
            raise TaskDefinitionError(
                "Cannot read operation of task",
                {"task": self.name},
            )
        if self.receiver is not None:
            return self.operation(self.receiver, *self.args, **self.kwargs)
        return self.operation(*self.args, **self.kwargs)


@dataclass
class BatchSummary:
    """Counts derived from a status store snapshot."""

    total: int = 0
    fulfilled: int = 0
    rejected: int = 0
    pending: int = 0
    acknowledged: int = 0

    @property
    def is_completed(self) -> bool:
        """Every result known and acknowledged."""
        return self.pending == 0 and self.acknowledged == self.total

    @property
    def is_fulfilled(self) -> bool:
        """Completed without any rejection."""
        return self.is_completed and self.rejected == 0
