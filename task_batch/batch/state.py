"""Per-task status and cache store.

Each task owns two status slots: the *primary* slot records whether its result
is known (pending, fulfilled or rejected) and the *after-callback* slot records
whether that result has been acknowledged downstream (pending or fulfilled).
Aggregate predicates over both slots are exposed as futures that resolve when
a status change makes them true.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from task_batch.batch.notifier import Notifier
from task_batch.models import NO_CACHED_VALUE, BatchSummary, TaskStatus
from task_batch.utils import get_logger

logger = get_logger(__name__)


class _PredicateWaiter:
    """Resolves a future the first time ``predicate`` holds after a change."""

    def __init__(self, predicate: Callable[[], bool], future: asyncio.Future):
        self.predicate = predicate
        self.future = future

    def update(self) -> None:
        if not self.future.done() and self.predicate():
            self.future.set_result(True)


class StatusStore:
    """Two-slot status machine plus response cache for the tasks of a batch."""

    def __init__(self) -> None:
        self._primary: dict[str, TaskStatus] = {}
        self._acknowledged: dict[str, TaskStatus] = {}
        self._cache: dict[str, Any] = {}
        self._notifier = Notifier()

    # Entry lifecycle

    def init(self, name: str) -> None:
        """Create both slots as pending unless both already exist.

        If only one of the two slots exists, both are recreated as pending.
        """
        if name in self._primary and name in self._acknowledged:
            return
        self._create(name)
        logger.debug(f"Status initialized: {name}")
        self._notifier.notify_all()

    def reset_entry(self, name: str) -> None:
        """Recreate both slots of a fully initialized task as pending."""
        if name in self._primary and name in self._acknowledged:
            self._create(name)
            logger.debug(f"Status reset: {name}")
            self._notifier.notify_all()

    def reopen(self, name: str) -> bool:
        """Return a rejected primary slot to pending.

        The after-callback slot and the cache are left as they are.

        Returns:
            True if the task was rejected and is now pending
        """
        if self._primary.get(name) is not TaskStatus.REJECTED:
            return False
        self._primary[name] = TaskStatus.PENDING
        logger.debug(f"Status reopened: {name}")
        self._notifier.notify_all()
        return True

    def reset_rejected(self) -> None:
        """Return every rejected primary slot to pending."""
        for name in self.list_rejected():
            self.reopen(name)

    def reset(self) -> None:
        """Drop every status entry and cached value."""
        self._primary = {}
        self._acknowledged = {}
        self._cache = {}

    def is_initialized(self, name: str) -> bool:
        return name in self._primary

    # Status slots

    def update(self, name: str, status: TaskStatus) -> None:
        """Settle the primary slot of an initialized, pending task.

        Anything other than pending -> fulfilled/rejected is ignored.
        """
        current = self._primary.get(name)
        if current is None:
            return
        if current is not TaskStatus.PENDING or status is TaskStatus.PENDING:
            logger.warning(f"Ignored status transition for {name}: {current.value} -> {status.value}")
            return
        self._primary[name] = status
        logger.debug(f"Status updated: {name} -> {status.value}")
        self._notifier.notify_all()

    def observe(self, name: str) -> TaskStatus | None:
        """Current primary status, or None if the task is unknown."""
        return self._primary.get(name) or None

    def mark_acknowledged(self, name: str) -> None:
        """Fulfil the after-callback slot of an initialized task."""
        if self._acknowledged.get(name) is not TaskStatus.PENDING:
            return
        self._acknowledged[name] = TaskStatus.FULFILLED
        logger.debug(f"Status acknowledged: {name}")
        self._notifier.notify_all()

    def is_acknowledged(self, name: str) -> bool:
        return self._acknowledged.get(name) is TaskStatus.FULFILLED

    def list_rejected(self) -> list[str]:
        """Names whose primary slot is rejected, in initialization order."""
        return [name for name, status in self._primary.items() if status is TaskStatus.REJECTED]

    # Cache

    def get_cached(self, name: str) -> Any:
        """Cached value of ``name``; a missing or None value is NO_CACHED_VALUE."""
        value = self._cache.get(name)
        return NO_CACHED_VALUE if value is None else value

    def put_cached(self, name: str, value: Any) -> None:
        self._cache[name] = value

    # Snapshots

    def status_list(self) -> dict[str, tuple[TaskStatus | None, TaskStatus | None]]:
        """Snapshot of ``name -> (primary, after-callback)``."""
        names = dict.fromkeys([*self._primary, *self._acknowledged])
        return {name: (self._primary.get(name), self._acknowledged.get(name)) for name in names}

    def cache_list(self) -> dict[str, Any]:
        return dict(self._cache)

    def summary(self) -> BatchSummary:
        primary = list(self._primary.values())
        return BatchSummary(
            total=len(primary),
            fulfilled=primary.count(TaskStatus.FULFILLED),
            rejected=primary.count(TaskStatus.REJECTED),
            pending=primary.count(TaskStatus.PENDING),
            acknowledged=sum(
                1 for name in self._primary if self.is_acknowledged(name)
            ),
        )

    # Aggregate predicates

    def _all_slots(self) -> list[TaskStatus]:
        return [*self._primary.values(), *self._acknowledged.values()]

    def is_completed(self) -> bool:
        """Every slot, primary and after-callback, has left pending."""
        return all(status is not TaskStatus.PENDING for status in self._all_slots())

    def is_fulfilled(self) -> bool:
        return all(status is TaskStatus.FULFILLED for status in self._all_slots())

    def await_completed(self) -> asyncio.Future:
        """Future resolving to True once the batch is completed.

        The future is already resolved when the batch is completed at call
        time; otherwise it resolves on the first status change after which it
        is. It never resolves while any task stays unacknowledged.
        """
        future = asyncio.get_running_loop().create_future()
        if self.is_completed():
            future.set_result(True)
            return future

        waiter = _PredicateWaiter(self.is_completed, future)
        self._notifier.subscribe(waiter)
        future.add_done_callback(lambda _: self._notifier.unsubscribe(waiter))
        return future

    def await_fulfilled(self) -> asyncio.Future:
        """Future resolving, once the batch is completed, to whether every task was fulfilled."""
        return asyncio.ensure_future(self._fulfilled_once_completed())

    async def _fulfilled_once_completed(self) -> bool:
        await self.await_completed()
        return self.is_fulfilled()

    def _create(self, name: str) -> None:
        self._primary[name] = TaskStatus.PENDING
        self._acknowledged[name] = TaskStatus.PENDING
