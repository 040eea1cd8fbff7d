"""Bounded-concurrency worker pool over a shared backlog."""

import asyncio
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from task_batch.batch.executor import TaskExecutor
from task_batch.batch.state import StatusStore
from task_batch.exceptions import TaskDefinitionError, TaskRejectedError
from task_batch.models import TaskDefinition, TaskStatus
from task_batch.utils import get_logger

logger = get_logger(__name__)

# Type alias for the per-task acknowledgement hook
AcknowledgeHook = Callable[[str], None]


class Scheduler:
    """Runs tasks through ``limit`` workers pulling from one FIFO backlog.

    Every executed task's response (or rejection reason) is written into
    ``response``, the batch response shared by all runs of this scheduler.
    """

    def __init__(
        self,
        store: StatusStore,
        executor: TaskExecutor | None = None,
        acknowledge: AcknowledgeHook | None = None,
    ):
        """Initialize scheduler.

        Args:
            store: Status store shared by the batch.
            executor: Task executor (one bound to ``store`` by default).
            acknowledge: Optional hook called with each task name once a
                worker has finished executing it.
        """
        self.store = store
        self.executor = executor or TaskExecutor(store)
        self.acknowledge = acknowledge
        self.response: dict[str, Any] = {}

    async def run_all(
        self,
        tasks: Mapping[str, TaskDefinition],
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Execute every task of ``tasks`` in registration order.

        Args:
            tasks: Registered tasks by name.
            limit: Maximum concurrent tasks; None, values below 1 and values
                above the task count mean one worker per task.

        Returns:
            The batch response.

        Raises:
            TaskDefinitionError: If a worker met a malformed task. Raised only
                after every other worker has stopped.
        """
        return await self.run_subset(tasks, list(tasks), limit)

    async def run_subset(
        self,
        tasks: Mapping[str, TaskDefinition],
        names: Iterable[str],
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Execute only the tasks named in ``names``; see run_all."""
        names = list(names)
        if not names:
            return self.response

        # Statuses must exist before the first suspension point
        for name in names:
            self.store.init(name)

        if limit is None or limit <= 0 or limit > len(names):
            limit = len(names)

        backlog = deque(names[limit:])
        logger.info(f"Starting batch run: {len(names)} tasks, limit={limit}")

        workers = [self._worker(tasks, name, backlog) for name in names[:limit]]
        outcomes = await asyncio.gather(*workers, return_exceptions=True)

        errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        summary = self.store.summary()
        logger.info(
            f"Batch run finished: {summary.fulfilled} fulfilled, "
            f"{summary.rejected} rejected, {len(errors)} aborted workers"
        )
        if errors:
            raise errors[0]
        return self.response

    async def execute(self, task: TaskDefinition) -> Any:
        """Execute one task and record its outcome in the batch response.

        The result is stored unless the task already has a response and was
        fulfilled when picked up, so the short-circuited re-run of a
        fulfilled task never replaces its response. A task that was rejected
        when picked up is executed again and its new result or rejection
        reason replaces the stored one.

        Raises:
            TaskRejectedError: If the task was rejected.
        """
        record = (
            task.name not in self.response
            or self.store.observe(task.name) is not TaskStatus.FULFILLED
        )
        try:
            result = await self.executor.run(task)
        except TaskRejectedError as e:
            if record:
                self.response[task.name] = e.reason
            raise
        if record:
            self.response[task.name] = result
        return result

    async def _worker(
        self,
        tasks: Mapping[str, TaskDefinition],
        name: str,
        backlog: deque[str],
    ) -> None:
        """Execute ``name`` and then backlog entries until the backlog is empty."""
        while True:
            task = tasks.get(name)
            if task is None or task.operation is None:
                logger.error(f"Worker aborted on malformed task: {name}")
                raise TaskDefinitionError("Cannot read operation of task", {"task": name})

            try:
                await self.execute(task)
            except TaskRejectedError as e:
                logger.debug(f"Recorded rejection of {name}: {e.reason!r}")

            if self.acknowledge is not None:
                self.acknowledge(name)

            if not backlog:
                return
            name = backlog.popleft()
