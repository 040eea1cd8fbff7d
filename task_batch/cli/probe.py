"""Out-of-process probe of the batch wait predicates."""

from task_batch.batch import StatusStore, TaskExecutor
from task_batch.exceptions import TaskRejectedError
from task_batch.models import TaskDefinition
from task_batch.utils import get_logger

logger = get_logger(__name__)


async def _resolve() -> str:
    return ""


async def _reject() -> str:
    raise RuntimeError("probe rejection")


def build_probe_tasks(mode: str) -> list[TaskDefinition]:
    """Two callback-less tasks; the second rejects unless ``mode`` is "fulfilled"."""
    return [
        TaskDefinition(name="probe", operation=_resolve),
        TaskDefinition(name="probe2", operation=_resolve if mode == "fulfilled" else _reject),
    ]


async def run_probe(mode: str, acknowledged: int) -> bool:
    """Execute the probe tasks, acknowledge the first ``acknowledged`` and wait.

    Args:
        mode: "completed" or "fulfilled", the predicate to wait for.
        acknowledged: Number of probe tasks to acknowledge (0-2).

    Returns:
        The predicate result.
    """
    store = StatusStore()
    executor = TaskExecutor(store)
    tasks = build_probe_tasks(mode)

    for task in tasks:
        try:
            await executor.run(task)
        except TaskRejectedError as e:
            logger.debug(f"Probe task {e.task_name} rejected")

    waiter = store.await_fulfilled() if mode == "fulfilled" else store.await_completed()
    for task in tasks[:acknowledged]:
        store.mark_acknowledged(task.name)

    return await waiter
