# src/moroutines/tasks/waiters.py

"""
Composite waiters: wait for any / all of several suspension sources.

Inputs may be tasks (their completion), awaiters, primitive instructions,
generators/iterables, or other composites. They are normalized once, at
construction, and never change afterwards.

Every poll advances every source exactly once. There is no short-circuit, so a
source that already finished is still polled (finished sources keep returning
False). Do not mix in WaitSeconds: wall-clock sources break the
one-poll-per-tick assumption.
"""

from __future__ import annotations

from typing import Any

from ..core.errors import ConstructionError
from ..core.ports import SuspensionSource
from .suspension import as_suspension


class _CompositeWaiter:
    __slots__ = ("_sources",)

    def __init__(self, *sources: Any) -> None:
        # WaitForAll([a, b]) and WaitForAll(a, b) mean the same thing.
        if len(sources) == 1 and isinstance(sources[0], (list, tuple)):
            sources = tuple(sources[0])
        self._sources: tuple[SuspensionSource, ...] = tuple(as_suspension(s) for s in sources)

    @property
    def sources(self) -> tuple[SuspensionSource, ...]:
        return self._sources

    def _poll(self) -> list[bool]:
        return [source.advance() for source in self._sources]

    def __len__(self) -> int:
        return len(self._sources)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self._sources)} sources)"


class WaitForAll(_CompositeWaiter):
    """Suspended until every source reports it is no longer suspended. Empty = done at once."""

    __slots__ = ()

    def advance(self) -> bool:
        return any(self._poll())


class WaitForAny(_CompositeWaiter):
    """Suspended until at least one source reports it is no longer suspended."""

    __slots__ = ()

    def __init__(self, *sources: Any) -> None:
        super().__init__(*sources)
        if not self._sources:
            raise ConstructionError("WaitForAny needs at least one source; it could never resolve")

    def advance(self) -> bool:
        return all(self._poll())
