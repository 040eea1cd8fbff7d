"""Task Batch - concurrency-bounded batch executor for async operations

Registers named asynchronous operations, runs them through a bounded worker
pool, tracks per-task status and cached results, and exposes awaitable
"completed" and "fulfilled" predicates for the whole batch.
"""

__version__ = "0.1.0"
__author__ = "Task Batch Team"

from task_batch.batch import Notifier, Scheduler, StatusStore, TaskBatch, TaskExecutor
from task_batch.models import NO_CACHED_VALUE, NO_RESULT, BatchSummary, TaskDefinition, TaskStatus

__all__ = [
    "TaskBatch",
    "TaskDefinition",
    "TaskStatus",
    "BatchSummary",
    "StatusStore",
    "TaskExecutor",
    "Scheduler",
    "Notifier",
    "NO_RESULT",
    "NO_CACHED_VALUE",
]
