"""Tests for the bounded-concurrency scheduler."""

from unittest.mock import AsyncMock, Mock

import pytest

from task_batch.batch.scheduler import Scheduler
from task_batch.batch.state import StatusStore
from task_batch.exceptions import TaskDefinitionError, TaskRejectedError
from task_batch.models import NO_RESULT, TaskDefinition, TaskStatus


@pytest.fixture
def store() -> StatusStore:
    """Create an empty status store."""
    return StatusStore()


@pytest.fixture
def scheduler(store) -> Scheduler:
    """Create a scheduler without acknowledgement hook."""
    return Scheduler(store)


def tracked_tasks(tracker, count: int, delay: float = 0.01) -> dict[str, TaskDefinition]:
    names = [f"task_{i}" for i in range(count)]
    return {
        name: TaskDefinition(name=name, operation=tracker.operation(name, delay=delay))
        for name in names
    }


class TestSchedulerConcurrency:
    """Tests for the concurrency limit."""

    @pytest.mark.asyncio
    async def test_limit_bounds_concurrency(self, scheduler, tracker):
        """Test no more than ``limit`` tasks run at once."""
        tasks = tracked_tasks(tracker, 10)

        await scheduler.run_all(tasks, limit=3)

        assert tracker.max_active == 3
        assert sorted(tracker.calls) == sorted(tasks)

    @pytest.mark.asyncio
    async def test_tasks_start_in_registration_order(self, scheduler, tracker):
        """Test workers pick tasks up in FIFO order."""
        tasks = tracked_tasks(tracker, 6)

        await scheduler.run_all(tasks, limit=2)

        assert tracker.started == list(tasks)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [None, 0, -1, 100])
    async def test_out_of_range_limit_runs_everything_at_once(self, scheduler, tracker, limit):
        """Test missing or out-of-range limits mean one worker per task."""
        tasks = tracked_tasks(tracker, 5)

        await scheduler.run_all(tasks, limit=limit)

        assert tracker.max_active == 5

    @pytest.mark.asyncio
    async def test_each_task_runs_once(self, scheduler, tracker):
        """Test every task is executed exactly once per run."""
        tasks = tracked_tasks(tracker, 7)

        await scheduler.run_all(tasks, limit=3)

        assert all(count == 1 for count in tracker.calls.values())
        assert len(tracker.calls) == 7


class TestSchedulerResponse:
    """Tests for the batch response."""

    @pytest.mark.asyncio
    async def test_empty_batch(self, scheduler):
        """Test an empty run returns the empty response."""
        assert await scheduler.run_all({}, limit=3) == {}

    @pytest.mark.asyncio
    async def test_records_results_and_rejections(self, scheduler, store, failing_factory):
        """Test fulfilled values and rejection reasons both land in the response."""
        error = RuntimeError("boom")
        tasks = {
            "ok": TaskDefinition(name="ok", operation=AsyncMock(return_value=1)),
            "bad": TaskDefinition(name="bad", operation=failing_factory(error)),
        }

        response = await scheduler.run_all(tasks)

        assert response == {"ok": 1, "bad": error}
        assert store.observe("ok") is TaskStatus.FULFILLED
        assert store.observe("bad") is TaskStatus.REJECTED

    @pytest.mark.asyncio
    async def test_rerun_of_fulfilled_task_keeps_response(self, scheduler):
        """Test the short-circuited re-run does not replace the stored response."""
        task = TaskDefinition(name="once", operation=AsyncMock(return_value="first"))

        assert await scheduler.execute(task) == "first"
        assert await scheduler.execute(task) is NO_RESULT
        assert scheduler.response == {"once": "first"}

    @pytest.mark.asyncio
    async def test_execute_reraises_rejection(self, scheduler):
        """Test execute records the reason and re-raises."""
        task = TaskDefinition(
            name="refused",
            operation=AsyncMock(return_value=0),
            validator=bool,
        )

        with pytest.raises(TaskRejectedError):
            await scheduler.execute(task)

        assert scheduler.response == {"refused": 0}

    @pytest.mark.asyncio
    async def test_run_subset(self, scheduler, tracker):
        """Test only the named tasks are executed."""
        tasks = tracked_tasks(tracker, 4)

        response = await scheduler.run_subset(tasks, ["task_1", "task_3"])

        assert sorted(tracker.calls) == ["task_1", "task_3"]
        assert response == {"task_1": "task_1", "task_3": "task_3"}


class TestSchedulerFailures:
    """Tests for malformed tasks and acknowledgement hooks."""

    @pytest.mark.asyncio
    async def test_malformed_task_aborts_only_its_worker(self, scheduler, tracker):
        """Test a task without operation stops one worker and surfaces at the end."""
        tasks = tracked_tasks(tracker, 4)
        tasks["task_1"] = TaskDefinition(name="task_1")

        with pytest.raises(TaskDefinitionError):
            await scheduler.run_all(tasks, limit=2)

        assert sorted(tracker.calls) == ["task_0", "task_2", "task_3"]
        assert "task_1" not in scheduler.response

    @pytest.mark.asyncio
    async def test_unknown_name_aborts_worker(self, scheduler, tracker):
        """Test a name missing from the registry is a definition error."""
        tasks = tracked_tasks(tracker, 1)

        with pytest.raises(TaskDefinitionError):
            await scheduler.run_subset(tasks, ["task_0", "missing"])

        assert tracker.calls == {"task_0": 1}

    @pytest.mark.asyncio
    async def test_acknowledge_hook_called_per_task(self, store, tracker, failing_factory):
        """Test the hook sees every executed task, rejected ones included."""
        hook = Mock()
        scheduler = Scheduler(store, acknowledge=hook)
        tasks = tracked_tasks(tracker, 3)
        tasks["bad"] = TaskDefinition(name="bad", operation=failing_factory(ValueError("x")))

        await scheduler.run_all(tasks, limit=2)

        assert sorted(call.args[0] for call in hook.call_args_list) == sorted(tasks)

    @pytest.mark.asyncio
    async def test_statuses_initialized_for_all_names(self, scheduler, tracker):
        """Test every name has a status entry once the run is done."""
        tasks = tracked_tasks(tracker, 3)

        await scheduler.run_all(tasks, limit=1)

        assert set(scheduler.store.status_list()) == set(tasks)


class TestSchedulerRerun:
    """Tests for executing a task again after a rejection."""

    @pytest.mark.asyncio
    async def test_rejected_task_response_is_replaced(self, scheduler, store):
        """Test a second execution of a rejected task overwrites its reason."""
        reasons = iter(["first", "second"])
        task = TaskDefinition(
            name="retried",
            operation=AsyncMock(return_value="value"),
            validator=lambda response: False,
            on_failure=lambda response: next(reasons),
        )

        with pytest.raises(TaskRejectedError):
            await scheduler.execute(task)
        assert scheduler.response == {"retried": "first"}

        with pytest.raises(TaskRejectedError):
            await scheduler.execute(task)

        assert scheduler.response == {"retried": "second"}
        assert store.observe("retried") is TaskStatus.REJECTED

    @pytest.mark.asyncio
    async def test_rejected_task_recovers(self, scheduler):
        """Test a rejected task that now succeeds replaces its reason with the value."""
        operation = AsyncMock(side_effect=[RuntimeError("down"), "up"])
        task = TaskDefinition(name="recovering", operation=operation)

        with pytest.raises(TaskRejectedError):
            await scheduler.execute(task)

        assert await scheduler.execute(task) == "up"
        assert scheduler.response == {"recovering": "up"}
