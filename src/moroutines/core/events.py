# src/moroutines/core/events.py

from __future__ import annotations

from collections.abc import Callable
from typing import Any

Listener = Callable[..., None]


class Subscription:
    """Detach handle returned by Event.subscribe()."""

    __slots__ = ("_event", "callback", "_active")

    def __init__(self, event: Event, callback: Listener) -> None:
        self._event = event
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def detach(self) -> None:
        if not self._active:
            return
        self._active = False
        self._event._forget(self)

    def __repr__(self) -> str:
        return f"Subscription(event={self._event.name!r}, active={self._active})"


class Event:
    """
    Ordered observer list for one kind of notification.

    - listeners run synchronously, in subscription order;
    - the list is snapshotted before invoking, so listeners may subscribe/detach freely;
    - a listener detached during an emit is not called afterwards in that emit;
    - listener exceptions propagate to whoever triggered the emit.
    """

    __slots__ = ("name", "_subscriptions")

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subscriptions: list[Subscription] = []

    def subscribe(self, callback: Listener) -> Subscription:
        if not callable(callback):
            raise TypeError(f"listener for {self.name!r} must be callable, got {callback!r}")
        sub = Subscription(self, callback)
        self._subscriptions.append(sub)
        return sub

    def emit(self, *args: Any) -> None:
        for sub in list(self._subscriptions):
            if sub.active:
                sub.callback(*args)

    def clear(self) -> None:
        for sub in list(self._subscriptions):
            sub.detach()

    def _forget(self, sub: Subscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)

    def __len__(self) -> int:
        return len(self._subscriptions)
