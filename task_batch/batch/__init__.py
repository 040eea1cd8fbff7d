"""Batch execution module.

This module provides the status store, the single-task executor, the
bounded worker-pool scheduler and the TaskBatch orchestrator built on them.
"""

from task_batch.batch.executor import TaskExecutor
from task_batch.batch.notifier import Notifier, Observer
from task_batch.batch.orchestrator import TaskBatch
from task_batch.batch.scheduler import Scheduler
from task_batch.batch.state import StatusStore

__all__ = [
    # Notification
    "Notifier",
    "Observer",
    # State
    "StatusStore",
    # Execution
    "TaskExecutor",
    "Scheduler",
    "TaskBatch",
]
