"""Contract shared by the engine's event emitters."""

import typing as t
from abc import ABC, abstractmethod

from .models.base import BaseEvent

# Handlers may be plain callables or coroutine functions
EventHandler = t.Callable[[BaseEvent], t.Any]


class BaseEmitter(ABC):
    """Publishes engine events to handlers keyed by namespaced event type.

    Event types are dotted strings such as "job.completed" or
    "model.updated"; each carries a BaseEvent subclass. Components take a
    BaseEmitter so callers can pass a real emitter, a NullEmitter or a mock.
    """

    @abstractmethod
    def on(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe handler to event_type."""

    @abstractmethod
    def off(self, event_type: str, handler: EventHandler) -> None:
        """Unsubscribe handler from event_type.

        Removing a handler that was never subscribed must not raise.
        """

    @abstractmethod
    async def emit(self, event_type: str, event: BaseEvent) -> None:
        """Deliver event to the handlers subscribed to event_type.

        Handler failures must not propagate to the emitting component.
        """
