# src/moroutines/tasks/task_scheduler.py

"""
Tick driver.

A small deterministic stepper that:
- accepts steppers (anything with advance() -> bool) and performs their first step at once
  (or on the next tick when registered with immediate=False),
- advances every live stepper exactly once per tick,
- drops steppers that finish or get cancelled,
- reports a failing stepper after the rest of the tick has been advanced.

run_driver() wraps it in an asyncio polling loop for hosts without their own frame loop.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass

from ..core.errors import SequenceError
from ..core.ports import SuspensionSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_TICKS = 10_000


@dataclass(slots=True, eq=False)
class StepHandle:
    """Opaque driver handle; cancelled/finished handles are never advanced again."""

    id: int
    stepper: SuspensionSource
    cancelled: bool = False
    finished: bool = False

    @property
    def alive(self) -> bool:
        return not (self.cancelled or self.finished)


class TickDriver:
    def __init__(self) -> None:
        self._handles: dict[int, StepHandle] = {}
        self._ids = itertools.count(1)
        self.tick_count = 0

    @property
    def active_count(self) -> int:
        return len(self._handles)

    def begin_stepping(self, stepper: SuspensionSource, *, immediate: bool = True) -> StepHandle:
        """
        Register stepper. With immediate=False its first advance waits for the next tick.
        """
        handle = StepHandle(id=next(self._ids), stepper=stepper)
        if immediate:
            self._advance(handle)
        if handle.alive:
            self._handles[handle.id] = handle
        return handle

    def cancel_stepping(self, handle: StepHandle | None) -> None:
        if handle is None:
            return
        handle.cancelled = True
        self._handles.pop(handle.id, None)

    def tick(self) -> int:
        """
        Advance every handle that was live when the tick started, once.

        Returns how many steppers were advanced. If any stepper raised, every
        failure is logged and the first one is re-raised after the pass.
        """
        self.tick_count += 1
        errors: list[Exception] = []
        advanced = 0

        for handle in list(self._handles.values()):
            if not handle.alive:
                continue
            advanced += 1
            try:
                self._advance(handle)
            except Exception as exc:
                logger.error("Stepper failed tick=%s handle=%s", self.tick_count, handle.id, exc_info=True)
                errors.append(exc)
            if not handle.alive:
                self._handles.pop(handle.id, None)

        if errors:
            raise errors[0]
        return advanced

    def run_until_idle(self, max_ticks: int | None = DEFAULT_MAX_TICKS) -> int:
        """Tick until nothing is left to step (or max_ticks is reached). Returns ticks done."""
        ticks = 0
        while self._handles and (max_ticks is None or ticks < max_ticks):
            self.tick()
            ticks += 1
        return ticks

    def clear(self) -> None:
        for handle in list(self._handles.values()):
            self.cancel_stepping(handle)

    @staticmethod
    def _advance(handle: StepHandle) -> None:
        try:
            still_going = handle.stepper.advance()
        except Exception:
            handle.finished = True
            raise
        if not still_going:
            handle.finished = True


async def run_driver(
        driver: TickDriver,
        *,
        interval_seconds: float = 1 / 60,
        max_ticks: int | None = None,
        stop_when_idle: bool = False,
) -> int:
    """
    Simple polling loop.

    Every interval_seconds:
    - tick the driver once,
    - log failed task sequences and keep going (the failing task is already STOPPED
      and carries the exception in task.error),
    - log any other tick failure (a raising listener, a foreign stepper) and keep going.

    Ends after max_ticks ticks, or once the driver is idle when stop_when_idle is set.
    Otherwise it runs until the coroutine/task is cancelled. Returns ticks done.
    """
    sleep_s = max(0.0, float(interval_seconds))
    ticks = 0

    while True:
        if stop_when_idle and driver.active_count == 0:
            break
        if max_ticks is not None and ticks >= max_ticks:
            break

        try:
            driver.tick()
        except SequenceError as exc:
            logger.warning("Task %r failed during tick %s; continuing", exc.task, driver.tick_count)
        except Exception:
            logger.exception("Driver tick %s failed; continuing", driver.tick_count)
        ticks += 1

        await asyncio.sleep(sleep_s)

    return ticks
