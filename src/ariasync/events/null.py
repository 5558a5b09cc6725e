"""Emitter for components nobody observes."""

from .base import BaseEmitter, EventHandler
from .models.base import BaseEvent


class NullEmitter(BaseEmitter):
    """Accepts subscriptions and events and drops them.

    The default for the supervisor and reconciler when built without an
    emitter. off() ignores handlers it never saw, same as EventEmitter.
    """

    def on(self, event_type: str, handler: EventHandler) -> None:
        pass

    def off(self, event_type: str, handler: EventHandler) -> None:
        pass

    async def emit(self, event_type: str, event: BaseEvent) -> None:
        pass
