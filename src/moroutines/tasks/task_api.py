# src/moroutines/tasks/task_api.py

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..core.ports import OwnerContext
from ..core.runtime import Runtime
from .task import Task
from .task_group import TaskGroup
from .task_models import TaskState


def create(
    runtime: Runtime,
    sequence: Any,
    owner: OwnerContext | None = None,
    *,
    name: str | None = None,
    auto_destroy: bool | None = None,
) -> Task:
    """
    Create a task in RESET state.

    sequence may be a generator function (rerunnable), an iterable (rerunnable)
    or a generator/iterator object (single use, auto-destroys by default).
    """
    return Task(runtime, sequence, owner, name=name, auto_destroy=auto_destroy)


def run(
    runtime: Runtime,
    sequence: Any,
    owner: OwnerContext | None = None,
    *,
    name: str | None = None,
    auto_destroy: bool | None = None,
) -> Task:
    """Create a task and run it (its first step happens before this returns)."""
    return create(runtime, sequence, owner, name=name, auto_destroy=auto_destroy).run()


def create_many(
    runtime: Runtime,
    *sequences: Any,
    owner: OwnerContext | None = None,
    auto_destroy: bool | None = None,
) -> list[Task]:
    """Create one task per sequence, in order. auto_destroy, when given, applies to all of them."""
    return [create(runtime, seq, owner, auto_destroy=auto_destroy) for seq in sequences]


def run_many(
    runtime: Runtime,
    *sequences: Any,
    owner: OwnerContext | None = None,
    auto_destroy: bool | None = None,
) -> list[Task]:
    """Create all tasks first, then run them in order."""
    tasks = create_many(runtime, *sequences, owner=owner, auto_destroy=auto_destroy)
    for task in tasks:
        task.run()
    return tasks


def tasks_for(
    runtime: Runtime,
    owner: OwnerContext | None,
    mask: TaskState = TaskState.ALL,
) -> list[Task]:
    """Tasks currently bound to owner (None = unowned), filtered by state mask."""
    return runtime.registry.tasks_for(owner, mask)


def unowned_tasks(runtime: Runtime, mask: TaskState = TaskState.ALL) -> list[Task]:
    return runtime.registry.unowned_tasks(mask)


def to_group(tasks: Iterable[Task]) -> TaskGroup:
    return TaskGroup(tasks)
