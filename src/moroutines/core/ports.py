# src/moroutines/core/ports.py

"""
Ports (interfaces) used by the task core.

The core depends on Protocols instead of concrete implementations.
This keeps the driver and owner contexts swappable and makes testing easier.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from .events import Subscription


@runtime_checkable
class SuspensionSource(Protocol):
    """
    Anything that can be polled for "still suspended?".

    advance() is called at most once per tick and returns True while the source
    is still suspended. Once it returns False it must keep returning False.
    """

    def advance(self) -> bool: ...


class Driver(Protocol):
    """
    Per-tick stepper (host scheduler side).

    The driver calls stepper.advance() exactly once per tick until the stepper
    returns False or the handle is cancelled. Calls for one stepper never overlap.
    """

    def begin_stepping(self, stepper: SuspensionSource, *, immediate: bool = True) -> Any:
        """Start stepping. immediate=True performs the first advance before returning."""
        ...

    def cancel_stepping(self, handle: Any) -> None: ...


class OwnerContext(Protocol):
    """
    External object that scopes a set of tasks.

    The registry subscribes to deactivation/teardown while it keeps a bucket for the owner:
    - on_deactivated callbacks receive (owner,)
    - on_torn_down callbacks receive (owner, destroy_tasks)
    """

    name: str

    @property
    def is_active(self) -> bool: ...

    @property
    def is_torn_down(self) -> bool: ...

    def on_deactivated(self, callback: Callable[[Any], None]) -> Subscription: ...

    def on_torn_down(self, callback: Callable[[Any, bool], None]) -> Subscription: ...
