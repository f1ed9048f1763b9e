# src/moroutines/core/errors.py

"""
Error taxonomy of the task core.

Every failure here is a contract violation by the caller (or a bug inside a
task's own sequence). Nothing is transient, so nothing is retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..tasks.task import Task


class MoroutineError(Exception):
    """Base class for errors raised by the task core."""


class InvalidOperationError(MoroutineError):
    """A control call the task state machine does not allow."""


class ConstructionError(MoroutineError):
    """A task or waiter could not be built from the given input."""


class SequenceError(MoroutineError):
    """A task's own sequence raised while it was being stepped."""

    def __init__(self, task: Task, cause: BaseException) -> None:
        super().__init__(f"{task!r} raised {type(cause).__name__}: {cause}")
        self.task = task
        self.cause = cause
