"""Batch-level operations over a registry of tasks."""

import asyncio
from collections.abc import Iterable
from typing import Any

from task_batch.batch.scheduler import Scheduler
from task_batch.batch.state import StatusStore
from task_batch.config import Settings, get_settings
from task_batch.exceptions import BatchFailedError, BatchTimeoutError, UnknownTaskError
from task_batch.models import BatchSummary, TaskDefinition
from task_batch.utils import get_logger

logger = get_logger(__name__)

TaskRef = str | TaskDefinition


def _task_name(name_or_task: TaskRef) -> str:
    return name_or_task.name if isinstance(name_or_task, TaskDefinition) else name_or_task


def _log_abandoned_run(run: asyncio.Future) -> None:
    """Report how a run ended after its caller stopped waiting for it."""
    if run.cancelled():
        return
    error = run.exception()
    if error is not None:
        logger.error(f"Batch run failed after the wait timed out: {error}")


class TaskBatch:
    """A registry of named tasks run together under one concurrency limit.

    Results are collected in ``response``. Tasks that define ``on_success``
    or ``on_failure`` acknowledge themselves; the others have to be
    acknowledged with ``acknowledge_one``/``acknowledge_all`` (or the
    ``batch.auto_acknowledge`` setting) before the batch counts as completed.

    Example:
        batch = TaskBatch([TaskDefinition(name="load", operation=load)])
        call = asyncio.create_task(batch.run_and_wait_all_fulfilled(limit=4))
        await asyncio.sleep(0)  # statuses are initialized once the call starts
        batch.acknowledge_all()
        response = await call
    """

    def __init__(
        self,
        tasks: Iterable[TaskDefinition] | None = None,
        settings: Settings | None = None,
    ):
        """Initialize batch.

        Args:
            tasks: Tasks to register (later duplicates overwrite earlier ones).
            settings: Application settings (loaded with get_settings by default).
        """
        self.settings = settings or get_settings()
        self.store = StatusStore()
        self._tasks: dict[str, TaskDefinition] = {}

        acknowledge = self.acknowledge_one if self.settings.batch.auto_acknowledge else None
        self.scheduler = Scheduler(self.store, acknowledge=acknowledge)

        if tasks:
            self.add_bulk(tasks)

    # Registry

    def add(self, task: TaskDefinition) -> None:
        """Register a task unless one with the same name exists."""
        if task.name not in self._tasks:
            self._tasks[task.name] = task

    def add_bulk(self, tasks: Iterable[TaskDefinition]) -> None:
        """Register tasks, replacing any existing task with the same name."""
        for task in tasks:
            self._tasks[task.name] = task

    def remove(self, name_or_task: TaskRef) -> None:
        self._tasks.pop(_task_name(name_or_task), None)

    def get(self, name: str) -> TaskDefinition | None:
        return self._tasks.get(name)

    @property
    def tasks(self) -> dict[str, TaskDefinition]:
        return dict(self._tasks)

    @property
    def response(self) -> dict[str, Any]:
        """Final response (or rejection reason) of every executed task."""
        return self.scheduler.response

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    # Execution

    async def run_task(self, name_or_task: TaskRef) -> Any:
        """Execute a single task and record it in the batch response.

        A task definition that is not registered yet is added first.

        Raises:
            UnknownTaskError: If no task is registered under the given name.
            TaskRejectedError: If the task was rejected.
        """
        if isinstance(name_or_task, TaskDefinition):
            self.add(name_or_task)
            task = name_or_task
        else:
            task = self._tasks.get(name_or_task)
            if task is None:
                raise UnknownTaskError(
                    "This batch does not have a task with this name",
                    {"task": name_or_task},
                )
        return await self.scheduler.execute(task)

    async def run_and_wait_all_fulfilled(
        self,
        limit: int | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Run every task, then wait until the batch is completed.

        Args:
            limit: Maximum concurrent tasks (defaults to the configured limit).
            timeout: Seconds to wait (defaults to ``batch.wait_timeout``).

        Returns:
            The batch response.

        Raises:
            BatchFailedError: If any task ended rejected.
            BatchTimeoutError: If the wait expired; running work carries on.
        """
        if await self._run_and_wait(list(self._tasks), limit, timeout, fulfilled=True):
            return self.response
        raise BatchFailedError("Some task was rejected")

    async def run_and_wait_all_completed(
        self,
        limit: int | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Run every task, then wait until each one is settled and acknowledged.

        Rejected tasks do not fail the call; their reasons are in the response.
        """
        if await self._run_and_wait(list(self._tasks), limit, timeout, fulfilled=False):
            return self.response
        raise BatchFailedError("Some task is still running")

    async def retry_failed(
        self,
        limit: int | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Re-run only the rejected tasks and wait as run_and_wait_all_fulfilled.

        Arguments of the tasks are not touched: fix whatever made them fail
        before retrying.
        """
        rejected = [name for name in self.store.list_rejected() if name in self._tasks]
        self.store.reset_rejected()
        logger.info(f"Retrying {len(rejected)} rejected tasks")

        if await self._run_and_wait(rejected, limit, timeout, fulfilled=True):
            return self.response
        raise BatchFailedError("Some task was rejected")

    # Acknowledgement

    def acknowledge_one(self, name_or_task: TaskRef) -> None:
        """Acknowledge a task that has no on_success/on_failure callback.

        Tasks with one of those callbacks acknowledge themselves when it runs.
        """
        task = self._tasks.get(_task_name(name_or_task))
        if task is not None and not task.has_outcome_callback:
            self.store.mark_acknowledged(task.name)

    def acknowledge_all(self) -> None:
        for name in self._tasks:
            if self.store.is_initialized(name):
                self.acknowledge_one(name)

    # State

    def is_completed(self) -> bool:
        return self.store.is_completed()

    def is_fulfilled(self) -> bool:
        return self.store.is_fulfilled()

    def summary(self) -> BatchSummary:
        return self.store.summary()

    def reset_task(self, name_or_task: TaskRef) -> None:
        """Return both status slots of one task to pending."""
        self.store.reset_entry(_task_name(name_or_task))

    def reset(self) -> None:
        """Forget every response, status and cached value."""
        self.scheduler.response = {}
        self.store.reset()

    async def _run_and_wait(
        self,
        names: list[str],
        limit: int | None,
        timeout: float | None,
        fulfilled: bool,
    ) -> bool:
        """Run ``names`` and wait for the batch predicate.

        The timeout only ends the caller's wait: the run itself is never
        cancelled.
        """
        if timeout is None:
            timeout = self.settings.batch.wait_timeout

        # Initialized here so the caller can acknowledge before results arrive
        for name in names:
            self.store.init(name)

        run = asyncio.ensure_future(
            self.scheduler.run_subset(
                dict(self._tasks),
                names,
                self.settings.batch.resolve_limit(limit),
            )
        )
        waiter = asyncio.ensure_future(self._await_predicate(run, fulfilled))

        done, _ = await asyncio.wait({waiter}, timeout=timeout)
        if not done:
            waiter.cancel()
            run.add_done_callback(_log_abandoned_run)
            raise BatchTimeoutError(
                "Batch did not finish in time",
                {"timeout": timeout, "summary": self.summary()},
            )
        return waiter.result()

    async def _await_predicate(self, run: asyncio.Future, fulfilled: bool) -> bool:
        await asyncio.shield(run)
        if fulfilled:
            return await self.store.await_fulfilled()
        return await self.store.await_completed()
