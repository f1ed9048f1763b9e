# src/moroutines/tasks/awaiters.py

"""
Awaiters for task events.

Each awaiter captures one of the task's generation counters when it is built.
It resolves when the counter has moved on (a newer run/reset cycle superseded
the one being awaited) or the awaited condition already holds. A destroyed
task resolves every awaiter, since nothing else can happen to it.

- cursor generation: bumped when reset() installs a fresh cursor
- run generation: bumped every time run() acquires a new driver handle
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .task import Task


class YieldAwaiter(ABC):
    __slots__ = ("_task", "_generation")

    def __init__(self, task: Task) -> None:
        self._task = task
        self._generation = self._capture(task)

    @staticmethod
    def _capture(task: Task) -> int:
        return task.cursor_generation

    @property
    def task(self) -> Task:
        return self._task

    @property
    @abstractmethod
    def keep_waiting(self) -> bool: ...

    def advance(self) -> bool:
        return self.keep_waiting

    @property
    def done(self) -> bool:
        return not self.keep_waiting

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._task!r}, done={self.done})"


class CompleteAwaiter(YieldAwaiter):
    __slots__ = ()

    @property
    def keep_waiting(self) -> bool:
        task = self._task
        return (
            self._generation == task.cursor_generation
            and not (task.is_completed or task.is_destroyed)
        )


class ResetAwaiter(YieldAwaiter):
    __slots__ = ()

    @property
    def keep_waiting(self) -> bool:
        task = self._task
        return (
            self._generation == task.cursor_generation
            and not (task.is_reset or task.is_destroyed)
        )


class RunAwaiter(YieldAwaiter):
    __slots__ = ()

    @staticmethod
    def _capture(task: Task) -> int:
        return task.run_generation

    @property
    def keep_waiting(self) -> bool:
        task = self._task
        return (
            self._generation == task.run_generation
            and not (task.is_running or task.is_destroyed)
        )


class StopAwaiter(YieldAwaiter):
    __slots__ = ()

    @staticmethod
    def _capture(task: Task) -> int:
        return task.run_generation

    @property
    def keep_waiting(self) -> bool:
        task = self._task
        return self._generation == task.run_generation and task.is_running


class DestroyAwaiter(YieldAwaiter):
    __slots__ = ()

    @property
    def keep_waiting(self) -> bool:
        return not self._task.is_destroyed
