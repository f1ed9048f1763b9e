# src/moroutines/tasks/owner.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.errors import InvalidOperationError
from ..core.events import Event, Subscription

logger = logging.getLogger(__name__)


class Owner:
    """
    Concrete owner context: a named scope that can be switched off.

    - deactivate() stops every running task bound to it (through the registry),
    - activate() does not restart anything; callers run tasks again explicitly,
    - teardown() is permanent. With destroy_tasks=True the bound tasks are destroyed,
      otherwise they are stopped and cannot run until moved to another owner.
    """

    def __init__(self, name: str = "owner", *, active: bool = True) -> None:
        self.name = name
        self._active = bool(active)
        self._torn_down = False
        self._deactivated = Event(f"{name}.deactivated")
        self._torn_down_event = Event(f"{name}.torn_down")

    @property
    def is_active(self) -> bool:
        return self._active and not self._torn_down

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def activate(self) -> None:
        if self._torn_down:
            raise InvalidOperationError(f"Owner {self.name!r} is torn down and cannot be activated")
        self._active = True

    def deactivate(self) -> None:
        if not self.is_active:
            return
        self._active = False
        logger.debug("Owner %r deactivated", self.name)
        self._deactivated.emit(self)

    def teardown(self, *, destroy_tasks: bool = False) -> None:
        if self._torn_down:
            return
        self._active = False
        self._torn_down = True
        logger.debug("Owner %r torn down (destroy_tasks=%s)", self.name, destroy_tasks)
        self._torn_down_event.emit(self, destroy_tasks)

    def on_deactivated(self, callback: Callable[[Owner], None]) -> Subscription:
        return self._deactivated.subscribe(callback)

    def on_torn_down(self, callback: Callable[[Owner, bool], None]) -> Subscription:
        return self._torn_down_event.subscribe(callback)

    def __repr__(self) -> str:
        state = "torn_down" if self._torn_down else ("active" if self._active else "inactive")
        return f"Owner({self.name!r}, {state})"
