# src/moroutines/tasks/task.py

"""
Task: a controllable wrapper around one resumable sequence.

A task owns:
- the state machine (RESET -> RUNNING -> STOPPED/COMPLETED -> DESTROYED),
- the cursor into its sequence (a SequenceSource) and the factory that makes fresh cursors,
- its registry membership (unowned bucket or exactly one owner bucket),
- per-event observer lists.

Stepping is done by the runtime's driver: run() hands over a stepper which the
driver advances once per tick. The first advance happens inside run(), the
same way a host coroutine starts immediately.

Key invariants:
- exactly one state holds at any time; DESTROYED is terminal,
- stop() keeps the cursor, only reset() replaces it,
- a stepper from a superseded run cycle never touches the task (run generation check),
- a destroyed task is out of the registry before destroy() returns.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING, Any

from ..core.errors import ConstructionError, InvalidOperationError, SequenceError
from ..core.events import Event, Listener, Subscription
from ..core.ports import OwnerContext, SuspensionSource
from .awaiters import (
    CompleteAwaiter,
    DestroyAwaiter,
    ResetAwaiter,
    RunAwaiter,
    StopAwaiter,
    YieldAwaiter,
)
from .suspension import SequenceSource
from .task_models import TaskEvent, TaskState

if TYPE_CHECKING:
    from ..core.runtime import Runtime

logger = logging.getLogger(__name__)

SequenceFactory = Callable[[], Iterator[Any]]


def _resolve_sequence(sequence: Any) -> tuple[SequenceFactory | None, Iterator[Any]]:
    """
    Split the constructor input into (factory, first cursor).

    - iterator / generator object: single use, no factory
    - iterable (list, custom __iter__): factory = iter(sequence)
    - zero-argument callable (e.g. a generator function): factory = the callable
    """
    if sequence is None:
        raise ConstructionError("Task needs a sequence, got None")

    if isinstance(sequence, Iterator):
        return None, sequence

    factory: SequenceFactory
    if isinstance(sequence, Iterable) and not isinstance(sequence, (str, bytes)):
        def factory() -> Iterator[Any]:
            return iter(sequence)
    elif callable(sequence):
        def factory() -> Iterator[Any]:
            produced = sequence()
            if produced is None:
                raise ConstructionError(f"Sequence factory {sequence!r} returned None")
            return iter(produced)
    else:
        raise ConstructionError(f"Unsupported sequence type: {type(sequence).__name__}")

    try:
        first = factory()
    except TypeError as exc:
        raise ConstructionError(f"Sequence factory {sequence!r} did not produce an iterator") from exc
    return factory, first


class _TaskStepper:
    """What the driver sees: advances the task while its run cycle is current."""

    __slots__ = ("_task", "_generation")

    def __init__(self, task: Task, generation: int) -> None:
        self._task = task
        self._generation = generation

    def advance(self) -> bool:
        return self._task._step(self._generation)

    def __repr__(self) -> str:
        return f"_TaskStepper({self._task!r}, generation={self._generation})"


class Task:
    """
    Controllable cooperative task ("moroutine").

    Tasks use reference identity: two tasks are never equal unless they are the same object.
    """

    def __init__(
        self,
        runtime: Runtime,
        sequence: Any,
        owner: OwnerContext | None = None,
        *,
        name: str | None = None,
        auto_destroy: bool | None = None,
    ) -> None:
        runtime.ensure_open()
        factory, cursor = _resolve_sequence(sequence)

        if owner is not None and owner.is_torn_down:
            raise InvalidOperationError(f"Owner {owner.name!r} is torn down; cannot bind a new task to it")

        self._runtime = runtime
        self.name = name
        self._factory = factory
        self._cursor = SequenceSource(cursor)
        self._state = TaskState.RESET
        self._owner: OwnerContext | None = owner
        self._cursor_generation = 0
        self._run_generation = 0
        self._handle: Any = None
        self._stepping = False
        self._retired: list[SequenceSource] = []
        self.error: BaseException | None = None

        if auto_destroy is None:
            # Single-use cursors cannot be rerun meaningfully.
            auto_destroy = factory is None or bool(runtime.settings.default_auto_destroy)
        self.auto_destroy = auto_destroy

        self._events: dict[TaskEvent, Event] = {kind: Event(kind.value) for kind in TaskEvent}

        runtime.registry.add(self, owner)
        logger.debug("Created %r", self)

    # ---- state ----

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def is_reset(self) -> bool:
        return self._state is TaskState.RESET

    @property
    def is_running(self) -> bool:
        return self._state is TaskState.RUNNING

    @property
    def is_stopped(self) -> bool:
        return self._state is TaskState.STOPPED

    @property
    def is_completed(self) -> bool:
        return self._state is TaskState.COMPLETED

    @property
    def is_destroyed(self) -> bool:
        return self._state is TaskState.DESTROYED

    @property
    def is_owned(self) -> bool:
        return self._owner is not None

    @property
    def owner(self) -> OwnerContext | None:
        return self._owner

    @property
    def runtime(self) -> Runtime:
        return self._runtime

    @property
    def last_result(self) -> Any:
        """Most recent value yielded by the sequence (None before the first step and after destroy)."""
        if self._state is TaskState.DESTROYED:
            return None
        return self._cursor.current

    @property
    def is_resettable(self) -> bool:
        return self._factory is not None

    @property
    def cursor_generation(self) -> int:
        return self._cursor_generation

    @property
    def run_generation(self) -> int:
        return self._run_generation

    @property
    def label(self) -> str:
        return self.name or f"task@{id(self):x}"

    def __repr__(self) -> str:
        return f"<Task {self.label} state={self._state.name}>"

    def set_name(self, name: str | None) -> Task:
        self.name = name
        return self

    def set_auto_destroy(self, auto_destroy: bool) -> Task:
        self.auto_destroy = bool(auto_destroy)
        return self

    # ---- control ----

    def run(self, rerun_if_completed: bool = True) -> Task:
        """
        Start (or resume) stepping. Resuming continues the same cursor.

        A completed task is reset first when rerun_if_completed is true,
        otherwise InvalidOperationError is raised.
        """
        if self._state is TaskState.RUNNING:
            return self

        self._ensure_alive("run")
        self._ensure_owner_ready()

        if self._state is TaskState.COMPLETED:
            if not rerun_if_completed:
                logger.debug("Refusing to rerun completed %r", self)
                raise InvalidOperationError(
                    f"{self!r} is completed; call reset() first or run with rerun_if_completed=True"
                )
            self.reset()

        self._run_generation += 1
        generation = self._run_generation
        self.error = None
        self._set_state(TaskState.RUNNING)

        # A RUNNING listener may already have stopped/rerun us.
        if self._run_generation != generation or self._state is not TaskState.RUNNING:
            return self

        # Rerun from inside our own sequence: the first step waits for the next tick.
        handle = self._runtime.driver.begin_stepping(
            _TaskStepper(self, generation), immediate=not self._stepping
        )
        if self._is_current(generation):
            self._handle = handle
        return self

    def stop(self) -> Task:
        """Stop stepping; the cursor position is kept for the next run()."""
        if self._state is not TaskState.RUNNING:
            self._ensure_alive("stop")
            return self

        self._release_handle()
        self._set_state(TaskState.STOPPED)
        return self

    def reset(self) -> Task:
        """Return to the initial state with a fresh cursor (no-op for single-use sequences)."""
        self._ensure_alive("reset")

        if self._state is TaskState.RESET:
            return self

        if self._factory is None:
            logger.debug("Reset ignored for %r: built from a single-use iterator", self)
            return self

        try:
            fresh = SequenceSource(self._factory())
        except ConstructionError:
            raise
        except Exception as exc:
            raise ConstructionError(f"{self!r} could not rebuild its sequence: {exc}") from exc

        self._release_handle()
        previous, self._cursor = self._cursor, fresh
        self._cursor_generation += 1
        self.error = None
        self._set_state(TaskState.RESET)
        self._retire(previous)
        return self

    def rerun(self) -> Task:
        return self.reset().run()

    def destroy(self) -> None:
        """Stop (if running), leave the registry and become unusable. Safe to call twice."""
        if self._state is TaskState.DESTROYED:
            return

        if self._state is TaskState.RUNNING:
            self.stop()
            # A STOPPED listener may have destroyed us already.
            if self._state is TaskState.DESTROYED:
                return

        registry = self._runtime.registry
        owner = self._owner
        registry.remove(self, owner)
        if owner is not None:
            registry.try_dispose_if_empty(owner)
        self._owner = None

        self._set_state(TaskState.DESTROYED)
        self._retire(self._cursor)

    # ---- ownership ----

    def set_owner(self, owner: OwnerContext | None) -> Task:
        """Move the task to another owner's bucket (None = unowned)."""
        self._ensure_alive("change the owner of")

        if owner is self._owner:
            return self

        if owner is not None and owner.is_torn_down:
            logger.debug("Refusing to bind %r to torn down owner %r", self, owner.name)
            raise InvalidOperationError(f"Owner {owner.name!r} is torn down")

        registry = self._runtime.registry
        previous = self._owner
        registry.remove(self, previous)
        if previous is not None:
            registry.try_dispose_if_empty(previous)

        self._owner = owner
        registry.add(self, owner)
        logger.debug("%r moved to owner %r", self, getattr(owner, "name", None))

        if owner is not None and not owner.is_active:
            self.stop()
        return self

    def make_unowned(self) -> Task:
        return self.set_owner(None)

    # ---- events ----

    def subscribe(self, kind: TaskEvent | str, callback: Listener) -> Subscription:
        return self._events[TaskEvent(kind)].subscribe(callback)

    def on_reset(self, callback: Listener) -> Subscription:
        return self.subscribe(TaskEvent.RESET, callback)

    def on_running(self, callback: Listener) -> Subscription:
        return self.subscribe(TaskEvent.RUNNING, callback)

    def on_stopped(self, callback: Listener) -> Subscription:
        return self.subscribe(TaskEvent.STOPPED, callback)

    def on_completed(self, callback: Listener) -> Subscription:
        return self.subscribe(TaskEvent.COMPLETED, callback)

    def on_destroyed(self, callback: Listener) -> Subscription:
        return self.subscribe(TaskEvent.DESTROYED, callback)

    # ---- awaiting ----

    def wait_for_complete(self) -> YieldAwaiter:
        return CompleteAwaiter(self)

    def wait_for_stop(self) -> YieldAwaiter:
        return StopAwaiter(self)

    def wait_for_run(self) -> YieldAwaiter:
        return RunAwaiter(self)

    def wait_for_reset(self) -> YieldAwaiter:
        return ResetAwaiter(self)

    def wait_for_destroy(self) -> YieldAwaiter:
        return DestroyAwaiter(self)

    def as_suspension(self) -> SuspensionSource:
        """Yielding a task (or passing it to a waiter) waits for its completion."""
        return self.wait_for_complete()

    # ---- internals ----

    def _ensure_alive(self, action: str) -> None:
        if self._state is TaskState.DESTROYED:
            logger.debug("Cannot %s %r: already destroyed", action, self)
            raise InvalidOperationError(f"Cannot {action} {self!r}: already destroyed")

    def _ensure_owner_ready(self) -> None:
        owner = self._owner
        if owner is None:
            return
        if owner.is_torn_down:
            raise InvalidOperationError(f"Cannot run {self!r}: owner {owner.name!r} is torn down")
        if not owner.is_active:
            raise InvalidOperationError(f"Cannot run {self!r}: owner {owner.name!r} is inactive")

    def _set_state(self, state: TaskState) -> None:
        previous = self._state
        self._state = state
        logger.debug("%s: %s -> %s", self.label, previous.name, state.name)
        self._events[TaskEvent.for_state(state)].emit(self)

    def _release_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            self._runtime.driver.cancel_stepping(handle)

    def _retire(self, cursor: SequenceSource) -> None:
        # A generator cannot be closed while it is executing.
        if self._stepping:
            self._retired.append(cursor)
        else:
            cursor.close()

    def _close_retired(self) -> None:
        retired, self._retired = self._retired, []
        for cursor in retired:
            cursor.close()

    def _is_current(self, generation: int) -> bool:
        return self._run_generation == generation and self._state is TaskState.RUNNING

    def _step(self, generation: int) -> bool:
        if not self._is_current(generation):
            return False

        self._stepping = True
        try:
            suspended = self._cursor.advance()
        except Exception as exc:
            if self._is_current(generation):
                self._fail(exc)
            raise SequenceError(self, exc) from exc
        finally:
            self._stepping = False
            self._close_retired()

        # The sequence body may have stopped, reset or destroyed us.
        if not self._is_current(generation):
            return False
        if suspended:
            return True

        self._complete()
        return False

    def _complete(self) -> None:
        self._handle = None
        generation = self._cursor_generation
        self._set_state(TaskState.COMPLETED)

        # Skip auto-destroy if a COMPLETED listener already rearranged the task.
        if (
            self.auto_destroy
            and self._state is TaskState.COMPLETED
            and self._cursor_generation == generation
        ):
            self.destroy()

    def _fail(self, exc: BaseException) -> None:
        logger.debug("%r sequence raised %s; stopping", self, type(exc).__name__)
        self.error = exc
        self._handle = None
        self._set_state(TaskState.STOPPED)
