"""
Hook registry: typed, sequential event dispatch for agent extensions.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, Protocol, TypeVar, Union

from .events import HookEvent

logger = logging.getLogger(__name__)

TEvent = TypeVar("TEvent", bound=HookEvent)

HookCallback = Callable[[TEvent], Union[None, Awaitable[None]]]


class HookProvider(Protocol):
    """Anything that registers a bundle of callbacks on a registry."""

    def register_hooks(self, registry: "HookRegistry") -> None:
        ...


class HookRegistry:
    """
    Maps hook event classes to ordered callback lists.

    Callbacks are looked up by the exact class of the dispatched event and run
    one after another in registration order; async callbacks are awaited
    before the next one starts. An exception from a callback propagates to
    the dispatcher and skips the remaining callbacks.
    """

    def __init__(self) -> None:
        self._callbacks: dict[type[HookEvent], list[Callable[[Any], Any]]] = {}

    def add_callback(self, event_type: type[TEvent], callback: HookCallback[TEvent]) -> None:
        if not (isinstance(event_type, type) and issubclass(event_type, HookEvent)):
            raise TypeError(f"Expected a HookEvent subclass, got {event_type!r}")
        self._callbacks.setdefault(event_type, []).append(callback)

    def add_hook(self, provider: HookProvider) -> None:
        provider.register_hooks(self)

    def add_all_hooks(self, providers: Iterable[HookProvider]) -> None:
        for provider in providers:
            self.add_hook(provider)

    def has_callbacks(self, event_type: type[HookEvent] | None = None) -> bool:
        if event_type is None:
            return any(self._callbacks.values())
        return bool(self._callbacks.get(event_type))

    def get_callbacks_for(self, event: HookEvent) -> list[Callable[[Any], Any]]:
        return list(self._callbacks.get(type(event), ()))

    async def invoke_callbacks(self, event: TEvent) -> TEvent:
        """Dispatch *event* and return it, including any fields callbacks set."""
        callbacks = self.get_callbacks_for(event)
        if callbacks:
            logger.debug("dispatching %s to %d callback(s)", type(event).__name__, len(callbacks))
        for callback in callbacks:
            result = callback(event)
            if inspect.isawaitable(result):
                await result
        return event
