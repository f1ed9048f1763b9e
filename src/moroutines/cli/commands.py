# src/moroutines/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from functools import partial
from typing import cast

from ..core.runtime import Runtime
from ..tasks import task_api
from ..tasks.owner import Owner
from ..tasks.suspension import WaitTicks
from ..tasks.task_group import TaskGroup
from ..tasks.task_models import TaskState
from ..tasks.task_scheduler import TickDriver, run_driver

DemoEmitter = Callable[[str], None]
DemoHandler2 = Callable[[Runtime, list[str]], str]
DemoHandler3 = Callable[[Runtime, list[str], DemoEmitter | None], str]
DemoHandler = DemoHandler2 | DemoHandler3

logger = logging.getLogger(__name__)


class DemoRegistry:
    """Named demo registry used by the moroutines-demo entrypoint (help, tick, control, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, DemoHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: DemoHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def names(self) -> list[str]:
        return list(self._help)

    def handle(
        self,
        runtime: Runtime,
        line: str,
        emit: DemoEmitter | None = None,
    ) -> str:
        """
        Handle a string like "tick 5" (a leading "/" is accepted too).
        Returns the demo's summary line.
        """
        parts = line.strip().removeprefix("/").split()
        if not parts:
            return "No demo given. Use 'help' to list available demos."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown demo: {name}. Use 'help' to list available demos."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(DemoHandler3, handler)
            return h3(runtime, args, emit)

        h2 = cast(DemoHandler2, handler)
        return h2(runtime, args)

    def build_help(self) -> str:
        lines = ["Available demos:"]
        for name, help_text in self._help.items():
            lines.append(f"  {name} - {help_text}")
        return "\n".join(lines)


registry = DemoRegistry()


# ---- helpers ----


def _say(emit: DemoEmitter | None, text: str) -> None:
    if emit is not None:
        emit(text)
    else:
        logger.debug("demo: %s", text)


def _int_arg(args: list[str], index: int, default: int) -> int:
    try:
        return max(1, int(args[index]))
    except (IndexError, ValueError):
        return default


def _tick_driver(runtime: Runtime) -> TickDriver:
    driver = runtime.driver
    if not isinstance(driver, TickDriver):
        raise TypeError(f"Demos need a TickDriver, runtime has {type(driver).__name__}")
    return driver


def _drive(runtime: Runtime) -> int:
    """Tick the runtime's driver on the configured interval until nothing is left to step."""
    settings = runtime.settings
    return asyncio.run(
        run_driver(
            _tick_driver(runtime),
            interval_seconds=settings.tick_interval_seconds,
            max_ticks=settings.max_ticks,
            stop_when_idle=True,
        )
    )


def _countdown(n: int, emit: DemoEmitter | None, label: str):
    for left in range(n, 0, -1):
        _say(emit, f"{label}: {left}")
        yield left
    _say(emit, f"{label}: done")


def _spinner():
    turns = 0
    while True:
        turns += 1
        yield turns


# ---- demos ----


def demo_help(runtime: Runtime, args: list[str]) -> str:
    return registry.build_help()


def demo_tick(runtime: Runtime, args: list[str], emit: DemoEmitter | None = None) -> str:
    """
    tick [n]  -> a task that yields once per tick, n times (default 5)
    """
    count = _int_arg(args, 0, default=5)

    def ticker():
        for i in range(1, count + 1):
            _say(emit, f"tick {i}")
            yield i

    task = task_api.run(runtime, ticker, name="ticker")
    ticks = _drive(runtime)
    return f"{task.label} is {task.state.name} after {ticks} driver tick(s)"


def demo_control(runtime: Runtime, args: list[str], emit: DemoEmitter | None = None) -> str:
    """
    control [n]  -> stop a task halfway, tick while it is stopped, then resume it
    """
    steps = _int_arg(args, 0, default=5)
    driver = _tick_driver(runtime)

    def counter():
        for i in range(1, steps + 1):
            _say(emit, f"step {i}")
            yield i

    task = task_api.run(runtime, counter, name="counter")
    for _ in range(steps // 2):
        driver.tick()

    task.stop()
    paused_at = task.last_result
    _say(emit, f"stopped at {paused_at}")

    driver.tick()
    driver.tick()
    _say(emit, f"still at {task.last_result} after 2 idle ticks")

    task.run()
    _drive(runtime)
    return f"{task.label} resumed from {paused_at} and is {task.state.name}"


def demo_await(runtime: Runtime, args: list[str], emit: DemoEmitter | None = None) -> str:
    """
    await  -> one task yields another task's completion awaiter
    """
    worker = task_api.create(runtime, partial(_countdown, 3, emit, "worker"), name="worker")

    def waiter():
        _say(emit, "waiter: waiting for worker")
        yield worker.wait_for_complete()
        _say(emit, f"waiter: worker is {worker.state.name}")

    waiting = task_api.run(runtime, waiter, name="waiter")
    worker.run()
    _drive(runtime)
    return f"{waiting.label} is {waiting.state.name}, {worker.label} is {worker.state.name}"


def demo_state(runtime: Runtime, args: list[str], emit: DemoEmitter | None = None) -> str:
    """
    state [n]  -> print a task's state while it waits n ticks (default 3)
    """
    wait = _int_arg(args, 0, default=3)
    driver = _tick_driver(runtime)

    def sleeper():
        yield WaitTicks(wait)
        yield "awake"

    task = task_api.create(runtime, sleeper, name="sleeper")
    _say(emit, f"created: {task.state.name}")
    task.run()
    _say(emit, f"after run: {task.state.name}")

    while task.is_running:
        driver.tick()
        _say(emit, f"tick {driver.tick_count}: {task.state.name} last={task.last_result!r}")

    task.destroy()
    return f"{task.label} is {task.state.name}"


def demo_group(runtime: Runtime, args: list[str], emit: DemoEmitter | None = None) -> str:
    """
    group  -> run three countdowns as a group and wait for all of them
    """
    tasks = task_api.create_many(
        runtime,
        *(partial(_countdown, n, emit, f"countdown-{n}") for n in (1, 2, 3)),
    )
    group = task_api.to_group(tasks)
    group.on_running(lambda g: _say(emit, f"group running ({len(g)} tasks)"))

    def supervisor():
        yield group.wait_for_complete()
        _say(emit, "supervisor: every countdown completed")

    group.run()
    task_api.run(runtime, supervisor, name="supervisor")
    _drive(runtime)
    return f"group completed: {group.is_completed}"


def demo_owner(runtime: Runtime, args: list[str], emit: DemoEmitter | None = None) -> str:
    """
    owner  -> deactivate, reactivate and tear down an owner of two endless tasks
    """
    driver = _tick_driver(runtime)
    owner = Owner("scene")
    task_api.run(runtime, _spinner, owner, name="spinner-a")
    task_api.run(runtime, _spinner, owner, name="spinner-b")

    for _ in range(3):
        driver.tick()
    _say(emit, f"running: {len(task_api.tasks_for(runtime, owner, mask=TaskState.RUNNING))}")

    owner.deactivate()
    _say(emit, f"deactivated, running: {len(task_api.tasks_for(runtime, owner, mask=TaskState.RUNNING))}")

    owner.activate()
    TaskGroup(task_api.tasks_for(runtime, owner)).run()
    driver.tick()
    _say(emit, f"reactivated, running: {len(task_api.tasks_for(runtime, owner, mask=TaskState.RUNNING))}")

    owner.teardown(destroy_tasks=True)
    return f"torn down, tasks left for {owner.name}: {len(task_api.tasks_for(runtime, owner))}"


registry.register("help", demo_help, help_text="Show available demos.", aliases=["h", "?"])
registry.register("tick", demo_tick, help_text="Tick a task n times: tick [n].")
registry.register("control", demo_control, help_text="Stop and resume a task: control [n].")
registry.register("await", demo_await, help_text="Wait for another task to complete.")
registry.register("state", demo_state, help_text="Watch a task's state change: state [n].")
registry.register("group", demo_group, help_text="Run a group and wait for all members.")
registry.register("owner", demo_owner, help_text="Deactivate and tear down an owner.")
