"""Exception classes for task_batch."""

from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


class TaskBatchError(Exception):
    """Base exception class for task_batch."""

    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(TaskBatchError):
    """Configuration related errors."""

    severity = ErrorSeverity.FATAL


class TaskDefinitionError(TaskBatchError):
    """A task cannot be executed as defined (e.g. it has no operation)."""

    severity = ErrorSeverity.FATAL


class UnknownTaskError(TaskBatchError):
    """The batch has no task registered under the requested name."""

    severity = ErrorSeverity.ERROR


class TaskRejectedError(TaskBatchError):
    """A task settled as rejected.

    ``reason`` holds the final error value: the native exception, the response
    refused by the validator, or whatever the failure callbacks returned.
    """

    severity = ErrorSeverity.WARNING

    def __init__(self, task_name: str, reason: Any = None):
        self.task_name = task_name
        self.reason = reason
        super().__init__(f"Task '{task_name}' was rejected", {"reason": repr(reason)})


class BatchFailedError(TaskBatchError):
    """At least one task of the batch ended rejected."""

    severity = ErrorSeverity.ERROR


class BatchTimeoutError(TaskBatchError):
    """The caller stopped waiting for the batch before it finished."""

    severity = ErrorSeverity.ERROR
