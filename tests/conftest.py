"""Pytest configuration and shared fixtures."""

import asyncio
import copy
from collections.abc import Callable
from typing import Any

import pytest

from task_batch.config import reset_settings

NO_INPUT_PROVIDED = {"res": "No input provided"}


class ConcurrencyTracker:
    """Builds operations that record start order and peak concurrency."""

    def __init__(self) -> None:
        self.active = 0
        self.max_active = 0
        self.started: list[str] = []
        self.calls: dict[str, int] = {}

    def operation(self, name: str, delay: float = 0.01, result: Any = None) -> Callable:
        async def run() -> Any:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.started.append(name)
            self.calls[name] = self.calls.get(name, 0) + 1
            try:
                await asyncio.sleep(delay)
            finally:
                self.active -= 1
            return result if result is not None else name

        return run


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload settings for every test so environment overrides do not leak."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def tracker() -> ConcurrencyTracker:
    """Provide a fresh concurrency tracker."""
    return ConcurrencyTracker()


@pytest.fixture
def echo_factory() -> Callable[[float], Callable]:
    """Factory of operations resolving with their arguments after ``delay`` seconds.

    Without arguments the operation resolves with a copy of NO_INPUT_PROVIDED.
    """

    def factory(delay: float = 0.0) -> Callable:
        async def echo(*args: Any) -> Any:
            await asyncio.sleep(delay)
            if args and args[0]:
                return copy.deepcopy(list(args))
            return dict(NO_INPUT_PROVIDED)

        return echo

    return factory


@pytest.fixture
def failing_factory() -> Callable[[Exception], Callable]:
    """Factory of operations that raise the given error."""

    def factory(error: Exception) -> Callable:
        async def fail(*args: Any) -> Any:
            await asyncio.sleep(0)
            raise error

        return fail

    return factory
