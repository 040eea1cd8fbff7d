"""Single-task execution pipeline.

Runs one task end to end against a StatusStore:
invoke -> validate -> outcome callback -> settled callback -> cache -> signal.
"""

import copy
import inspect
from typing import Any

from task_batch.batch.state import StatusStore
from task_batch.exceptions import TaskDefinitionError, TaskRejectedError
from task_batch.models import NO_RESULT, TaskDefinition, TaskStatus
from task_batch.utils import get_logger

logger = get_logger(__name__)


async def _settle(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


class TaskExecutor:
    """Executes tasks and records their outcome in a StatusStore."""

    def __init__(self, store: StatusStore):
        """Initialize executor.

        Args:
            store: Status store shared by every task of the batch.
        """
        self.store = store

    async def run(self, task: TaskDefinition) -> Any:
        """Execute a task and return its final response.

        A task whose primary status is already fulfilled is not invoked
        again: the cached response is returned when the task is cached,
        ``NO_RESULT`` otherwise.

        Args:
            task: Task to execute.

        Returns:
            The response, after validation and callbacks.

        Raises:
            TaskDefinitionError: If the task has no operation.
            TaskRejectedError: If the operation failed or its response was
                refused by the validator; ``reason`` holds the final error.
        """
        if task.operation is None:
            raise TaskDefinitionError("Cannot read operation of task", {"task": task.name})

        name = task.name
        if self.store.observe(name) is TaskStatus.FULFILLED:
            logger.debug(f"Task {name} already fulfilled, skipping execution")
            return self.store.get_cached(name) if task.cached else NO_RESULT

        self.store.init(name)
        self.store.reopen(name)

        logger.debug(f"Executing task: {name}")
        cause: BaseException | None = None
        try:
            payload = await _settle(task.invoke())
        except Exception as e:
            # Native rejection: the validator never sees it
            outcome, payload, cause = TaskStatus.REJECTED, e, e
        else:
            outcome, payload, cause = self._validate(task, payload)

        payload = await self._dispatch_callbacks(task, outcome, payload)

        if outcome is TaskStatus.FULFILLED:
            if task.cached:
                self.store.put_cached(name, payload)
            logger.debug(f"Task {name} fulfilled")
            return payload

        logger.debug(f"Task {name} rejected: {payload!r}")
        raise TaskRejectedError(name, payload) from cause

    def _validate(
        self,
        task: TaskDefinition,
        response: Any,
    ) -> tuple[TaskStatus, Any, BaseException | None]:
        """Decide the outcome of a natively successful response."""
        if task.validator is None:
            return TaskStatus.FULFILLED, response, None

        # The validator works on its own copy and cannot alter the response
        try:
            is_valid = task.validator(copy.deepcopy(response))
        except Exception as e:
            logger.warning(f"Validator of task {task.name} raised: {e}")
            return TaskStatus.REJECTED, e, e

        if is_valid:
            return TaskStatus.FULFILLED, response, None
        return TaskStatus.REJECTED, response, None

    async def _dispatch_callbacks(
        self,
        task: TaskDefinition,
        outcome: TaskStatus,
        payload: Any,
    ) -> Any:
        """Record the outcome, run the callbacks and acknowledge if any ran.

        Tasks with neither a matching outcome callback nor ``on_settled`` stay
        unacknowledged until the caller acknowledges them.
        """
        self.store.update(task.name, outcome)

        callback = task.on_success if outcome is TaskStatus.FULFILLED else task.on_failure
        handled = False
        if callback is not None:
            payload = await _settle(callback(payload))
            handled = True
        if task.on_settled is not None:
            payload = await _settle(task.on_settled(payload))
            handled = True

        if handled:
            self.store.mark_acknowledged(task.name)
        return payload
