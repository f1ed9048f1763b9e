# src/moroutines/core/runtime.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import Settings, get_settings
from ..tasks.task_registry import TaskRegistry
from ..tasks.task_scheduler import TickDriver
from .errors import InvalidOperationError
from .ports import Driver

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """
    Process-scoped state shared by tasks: settings, the driver and the ownership registry.

    Built explicitly with init() and injected into every Task; there is no hidden singleton.
    """

    settings: Settings
    driver: Driver
    registry: TaskRegistry = field(default_factory=TaskRegistry)
    closed: bool = False

    def ensure_open(self) -> None:
        if self.closed:
            raise InvalidOperationError("Runtime is shut down")

    def shutdown(self) -> None:
        """Destroy every registered task. Safe to call more than once."""
        if self.closed:
            return

        tasks = self.registry.all_tasks()
        logger.info("Runtime shutdown: destroying %d task(s)", len(tasks))
        for task in tasks:
            task.destroy()

        clear = getattr(self.driver, "clear", None)
        if callable(clear):
            clear()
        self.closed = True


def init(
    settings: Settings | None = None,
    *,
    driver: Driver | None = None,
    registry: TaskRegistry | None = None,
) -> Runtime:
    """
    Create a Runtime.

    Keeping every piece injectable makes tests deterministic.
    If settings is None, falls back to get_settings(); the driver defaults to a TickDriver.
    """
    if settings is None:
        settings = get_settings()

    runtime = Runtime(
        settings=settings,
        driver=driver if driver is not None else TickDriver(),
        registry=registry if registry is not None else TaskRegistry(),
    )
    logger.debug("Runtime ready driver=%s", type(runtime.driver).__name__)
    return runtime
