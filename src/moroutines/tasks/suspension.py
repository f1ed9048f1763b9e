# src/moroutines/tasks/suspension.py

"""
Suspension sources.

Everything a task can wait on is normalized to one capability:
advance() -> still_suspended. This module holds the adapters for sequences and
a few primitive instructions, plus the normalization helpers used by tasks and
composite waiters.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from ..core.errors import ConstructionError
from ..core.ports import SuspensionSource


class SequenceSource:
    """
    Adapts an iterator (usually a generator) to the polling contract.

    Each advance() moves the iterator by one item. If the item itself is a
    suspension source (or a task, or a nested generator) the sequence does not
    move again until that source reports it is no longer suspended.
    Plain values suspend for exactly one advance.
    """

    __slots__ = ("_iterator", "_pending", "_exhausted", "current")

    def __init__(self, iterator: Iterator[Any]) -> None:
        self._iterator = iterator
        self._pending: SuspensionSource | None = None
        self._exhausted = False
        self.current: Any = None

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def advance(self) -> bool:
        if self._exhausted:
            return False

        if self._pending is not None:
            if self._pending.advance():
                return True
            self._pending = None

        try:
            value = next(self._iterator)
        except StopIteration:
            self._exhausted = True
            return False

        self.current = value
        self._pending = suspension_for(value)
        return True

    def close(self) -> None:
        """Finish early: close nested sequences and the iterator (runs generator finally blocks)."""
        pending, self._pending = self._pending, None
        self._exhausted = True
        if isinstance(pending, SequenceSource):
            pending.close()
        close = getattr(self._iterator, "close", None)
        if callable(close):
            close()


class WaitTicks:
    """Stay suspended until the n-th poll (WaitTicks(1) behaves like a plain yield)."""

    __slots__ = ("_remaining",)

    def __init__(self, ticks: int) -> None:
        self._remaining = max(0, int(ticks))

    def advance(self) -> bool:
        if self._remaining > 0:
            self._remaining -= 1
        return self._remaining > 0


class WaitUntil:
    """Suspended until predicate() becomes true."""

    __slots__ = ("_predicate",)

    def __init__(self, predicate: Callable[[], bool]) -> None:
        self._predicate = predicate

    def advance(self) -> bool:
        return not self._predicate()


class WaitWhile:
    """Suspended while predicate() stays true."""

    __slots__ = ("_predicate",)

    def __init__(self, predicate: Callable[[], bool]) -> None:
        self._predicate = predicate

    def advance(self) -> bool:
        return bool(self._predicate())


class WaitSeconds:
    """
    Wall-clock wait. The countdown starts on the first poll.

    Do not put this inside WaitForAny/WaitForAll: its result depends on time, not
    on how often it is polled.
    """

    __slots__ = ("_seconds", "_clock", "_deadline")

    def __init__(self, seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._seconds = max(0.0, float(seconds))
        self._clock = clock
        self._deadline: float | None = None

    def advance(self) -> bool:
        now = self._clock()
        if self._deadline is None:
            self._deadline = now + self._seconds
        return now < self._deadline


def _is_source(value: Any) -> bool:
    return callable(getattr(value, "advance", None))


def suspension_for(value: Any) -> SuspensionSource | None:
    """
    Adapter for a value yielded from a task's sequence, or None for plain values.

    Recognized: suspension sources, objects exposing as_suspension() (tasks),
    and iterators/generators (run as nested sequences).
    """
    if value is None or isinstance(value, (str, bytes)):
        return None
    if _is_source(value):
        return value
    to_source = getattr(value, "as_suspension", None)
    if callable(to_source):
        return to_source()
    if isinstance(value, Iterator):
        return SequenceSource(value)
    return None


def as_suspension(value: Any) -> SuspensionSource:
    """
    Normalize an explicit wait target (composite waiter input).

    Same as suspension_for(), but plain iterables are accepted as sequences and
    anything else is rejected.
    """
    if value is None:
        raise ConstructionError("suspension source is required")
    source = suspension_for(value)
    if source is not None:
        return source
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return SequenceSource(iter(value))
    raise ConstructionError(f"Cannot wait on {type(value).__name__}: {value!r}")
