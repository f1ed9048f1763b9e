# src/moroutines/tasks/task_group.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from ..core.errors import MoroutineError
from ..core.events import Event, Listener, Subscription
from ..core.ports import OwnerContext
from .task import Task
from .task_models import TaskEvent, TaskState
from .waiters import WaitForAll

logger = logging.getLogger(__name__)

_GROUP_EVENTS = (TaskEvent.RESET, TaskEvent.RUNNING, TaskEvent.STOPPED, TaskEvent.DESTROYED)


class TaskGroup:
    """
    Collection façade over many tasks.

    Aggregate predicates are conjunctions (an empty group is everything at once).
    Bulk operations walk the members in order and are not atomic: a member that
    refuses (e.g. running a destroyed task) or whose listener raises is logged
    and recorded in `failures`, and the pass continues. The group's own event fires once per pass, whatever
    happened to individual members.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self.tasks: list[Task] = list(tasks)
        self.failures: list[tuple[Task, Exception]] = []
        self._events: dict[TaskEvent, Event] = {kind: Event(f"group.{kind.value}") for kind in _GROUP_EVENTS}

    # ---- membership ----

    def add(self, task: Task) -> TaskGroup:
        self.tasks.append(task)
        return self

    def extend(self, tasks: Iterable[Task]) -> TaskGroup:
        self.tasks.extend(tasks)
        return self

    def remove(self, task: Task) -> TaskGroup:
        if task in self.tasks:
            self.tasks.remove(task)
        return self

    def __len__(self) -> int:
        return len(self.tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks)

    def __repr__(self) -> str:
        return f"<TaskGroup size={len(self.tasks)}>"

    # ---- aggregate state ----

    @property
    def is_reset(self) -> bool:
        return all(t.is_reset for t in self.tasks)

    @property
    def is_running(self) -> bool:
        return all(t.is_running for t in self.tasks)

    @property
    def is_stopped(self) -> bool:
        return all(t.is_stopped for t in self.tasks)

    @property
    def is_completed(self) -> bool:
        return all(t.is_completed for t in self.tasks)

    @property
    def is_destroyed(self) -> bool:
        return all(t.is_destroyed for t in self.tasks)

    @property
    def is_owned(self) -> bool:
        return all(t.is_owned for t in self.tasks)

    @property
    def owner(self) -> OwnerContext | None:
        """The owner shared by every member, or None (also for an empty group)."""
        if not self.tasks:
            return None
        owner = self.tasks[0].owner
        for task in self.tasks[1:]:
            if task.owner is not owner:
                return None
        return owner

    @property
    def auto_destroy(self) -> bool:
        return all(t.auto_destroy for t in self.tasks)

    @auto_destroy.setter
    def auto_destroy(self, value: bool) -> None:
        for task in self.tasks:
            task.auto_destroy = bool(value)

    def set_auto_destroy(self, auto_destroy: bool) -> TaskGroup:
        self.auto_destroy = auto_destroy
        return self

    # ---- owning ----

    def unowned_tasks(self, mask: TaskState = TaskState.ALL) -> list[Task]:
        return [t for t in self.tasks if not t.is_owned and t.state & mask]

    def set_owner(self, owner: OwnerContext | None) -> TaskGroup:
        return self._apply("set_owner", lambda t: t.set_owner(owner))

    def make_unowned(self) -> TaskGroup:
        return self.set_owner(None)

    # ---- control ----

    def run(self, rerun_if_completed: bool = True) -> TaskGroup:
        return self._apply("run", lambda t: t.run(rerun_if_completed), TaskEvent.RUNNING)

    def stop(self) -> TaskGroup:
        return self._apply("stop", Task.stop, TaskEvent.STOPPED)

    def reset(self) -> TaskGroup:
        return self._apply("reset", Task.reset, TaskEvent.RESET)

    def rerun(self) -> TaskGroup:
        self.reset()
        failures = list(self.failures)
        self.run()
        self.failures[:0] = failures
        return self

    def destroy(self) -> TaskGroup:
        return self._apply("destroy", Task.destroy, TaskEvent.DESTROYED)

    # ---- events ----

    def on_reset(self, callback: Listener) -> Subscription:
        return self._events[TaskEvent.RESET].subscribe(callback)

    def on_running(self, callback: Listener) -> Subscription:
        return self._events[TaskEvent.RUNNING].subscribe(callback)

    def on_stopped(self, callback: Listener) -> Subscription:
        return self._events[TaskEvent.STOPPED].subscribe(callback)

    def on_destroyed(self, callback: Listener) -> Subscription:
        return self._events[TaskEvent.DESTROYED].subscribe(callback)

    # ---- awaiting (member list is snapshotted) ----

    def wait_for_complete(self) -> WaitForAll:
        return WaitForAll([t.wait_for_complete() for t in self.tasks])

    def wait_for_stop(self) -> WaitForAll:
        return WaitForAll([t.wait_for_stop() for t in self.tasks])

    def wait_for_run(self) -> WaitForAll:
        return WaitForAll([t.wait_for_run() for t in self.tasks])

    def wait_for_reset(self) -> WaitForAll:
        return WaitForAll([t.wait_for_reset() for t in self.tasks])

    def wait_for_destroy(self) -> WaitForAll:
        return WaitForAll([t.wait_for_destroy() for t in self.tasks])

    # ---- internals ----

    def _apply(
        self,
        action: str,
        op: Callable[[Task], object],
        event: TaskEvent | None = None,
    ) -> TaskGroup:
        self.failures = []
        for task in list(self.tasks):
            try:
                op(task)
            except MoroutineError as exc:
                logger.warning("Group %s skipped %r: %s", action, task, exc)
                self.failures.append((task, exc))
            except Exception as exc:
                logger.warning("Group %s failed on %r", action, task, exc_info=True)
                self.failures.append((task, exc))

        if event is not None:
            self._events[event].emit(self)
        return self
