# src/moroutines/tasks/task_registry.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..core.events import Subscription
from ..core.ports import OwnerContext
from .task_models import TaskState

if TYPE_CHECKING:
    from .task import Task

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class OwnerBucket:
    owner: OwnerContext | None
    tasks: list[Task] = field(default_factory=list)
    subscriptions: list[Subscription] = field(default_factory=list)

    def matching(self, mask: TaskState) -> list[Task]:
        return [t for t in self.tasks if t.state & mask]


class TaskRegistry:
    """
    Ownership ledger: owner context -> ordered list of tasks.

    The schema is intentionally simple:
    - one bucket per owner, keyed by owner identity (the bucket keeps the owner alive)
    - one distinguished unowned bucket that lives as long as the registry
    - a named bucket is disposed as soon as it is left empty

    Only Task control methods mutate buckets (add/remove/try_dispose_if_empty);
    they also enforce the preconditions, so every call here is total.
    While a bucket exists the registry listens to its owner's deactivation and teardown.
    """

    def __init__(self) -> None:
        self._unowned = OwnerBucket(owner=None)
        self._buckets: dict[int, OwnerBucket] = {}

    # ---- bookkeeping ----

    def add(self, task: Task, owner: OwnerContext | None = None) -> None:
        self._bucket(owner, create=True).tasks.append(task)

    def remove(self, task: Task, owner: OwnerContext | None = None) -> None:
        bucket = self._bucket(owner, create=False)
        if bucket is not None and task in bucket.tasks:
            bucket.tasks.remove(task)

    def try_dispose_if_empty(self, owner: OwnerContext | None) -> bool:
        """Drop the owner's bucket if it holds no tasks. The unowned bucket is never disposed."""
        if owner is None:
            return False

        bucket = self._buckets.get(id(owner))
        if bucket is None or bucket.tasks:
            return False

        for sub in bucket.subscriptions:
            sub.detach()
        del self._buckets[id(owner)]
        logger.debug("Disposed empty bucket for owner %r", owner.name)
        return True

    # ---- queries ----

    def tasks_for(self, owner: OwnerContext | None, mask: TaskState = TaskState.ALL) -> list[Task]:
        bucket = self._bucket(owner, create=False)
        if bucket is None:
            return []
        return bucket.matching(mask)

    def unowned_tasks(self, mask: TaskState = TaskState.ALL) -> list[Task]:
        return self._unowned.matching(mask)

    def owners(self) -> list[OwnerContext]:
        return [b.owner for b in self._buckets.values() if b.owner is not None]

    def has_bucket(self, owner: OwnerContext | None) -> bool:
        return owner is None or id(owner) in self._buckets

    def all_tasks(self) -> list[Task]:
        out = list(self._unowned.tasks)
        for bucket in self._buckets.values():
            out.extend(bucket.tasks)
        return out

    def __len__(self) -> int:
        return len(self._unowned.tasks) + sum(len(b.tasks) for b in self._buckets.values())

    # ---- owner notifications ----

    def _on_owner_deactivated(self, owner: OwnerContext) -> None:
        bucket = self._buckets.get(id(owner))
        if bucket is None:
            return

        running = [t for t in bucket.tasks if t.is_running]
        logger.info("Owner %r deactivated; stopping %d task(s)", owner.name, len(running))
        for task in running:
            task.stop()

    def _on_owner_torn_down(self, owner: OwnerContext, destroy_tasks: bool) -> None:
        bucket = self._buckets.get(id(owner))
        if bucket is None:
            return

        tasks = list(bucket.tasks)
        logger.info(
            "Owner %r torn down; %s %d task(s)",
            owner.name,
            "destroying" if destroy_tasks else "stopping",
            len(tasks),
        )
        for task in tasks:
            if destroy_tasks:
                task.destroy()
            elif task.is_running:
                task.stop()

    # ---- low-level helpers ----

    def _bucket(self, owner: OwnerContext | None, *, create: bool) -> OwnerBucket | None:
        if owner is None:
            return self._unowned

        bucket = self._buckets.get(id(owner))
        if bucket is None and create:
            bucket = OwnerBucket(owner=owner)
            bucket.subscriptions.append(owner.on_deactivated(self._on_owner_deactivated))
            bucket.subscriptions.append(owner.on_torn_down(self._on_owner_torn_down))
            self._buckets[id(owner)] = bucket
            logger.debug("Created bucket for owner %r", owner.name)
        return bucket
