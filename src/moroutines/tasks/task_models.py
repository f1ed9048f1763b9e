# src/moroutines/tasks/task_models.py

from __future__ import annotations

from enum import Flag, StrEnum


class TaskState(Flag):
    """
    Task lifecycle state.

    Values are bit flags so registry/group queries can take a mask
    (e.g. TaskState.RUNNING | TaskState.STOPPED). A task is always in exactly
    one of the five single-bit states.
    """

    RESET = 1
    RUNNING = 2
    STOPPED = 4
    COMPLETED = 8
    DESTROYED = 16

    ALIVE = RESET | RUNNING | STOPPED | COMPLETED
    ALL = ALIVE | DESTROYED

    @classmethod
    def parse(cls, raw: str | None) -> TaskState:
        """Parse "running|stopped" / "running,stopped" style masks. Empty means ALL."""
        if not raw or not raw.strip():
            return cls.ALL
        mask = cls(0)
        for part in raw.replace(",", "|").split("|"):
            name = part.strip().upper()
            if not name:
                continue
            try:
                mask |= cls[name]
            except KeyError:
                raise ValueError(f"Unknown task state: {part.strip()!r}") from None
        return mask


class TaskEvent(StrEnum):
    """Notification kinds fired by tasks and groups (one per target state)."""

    RESET = "reset"
    RUNNING = "running"
    STOPPED = "stopped"
    COMPLETED = "completed"
    DESTROYED = "destroyed"

    @classmethod
    def for_state(cls, state: TaskState) -> TaskEvent:
        return _EVENT_BY_STATE[state]


_EVENT_BY_STATE: dict[TaskState, TaskEvent] = {
    TaskState.RESET: TaskEvent.RESET,
    TaskState.RUNNING: TaskEvent.RUNNING,
    TaskState.STOPPED: TaskEvent.STOPPED,
    TaskState.COMPLETED: TaskEvent.COMPLETED,
    TaskState.DESTROYED: TaskEvent.DESTROYED,
}
