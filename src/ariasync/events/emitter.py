"""In-process event emitter supporting sync and async handlers."""

import inspect
import typing as t
from collections import defaultdict

from ..infrastructure.logging import get_logger
from .base import BaseEmitter, EventHandler
from .models.base import BaseEvent

if t.TYPE_CHECKING:
    import loguru


class EventEmitter(BaseEmitter):
    """Dispatches events to subscribed handlers by namespaced event type.

    Handlers run in subscription order. A failing handler is logged and never
    prevents the remaining handlers from running, and never propagates to the
    component that emitted the event.

    Usage:
        emitter = EventEmitter()
        emitter.on("job.completed", lambda e: print(e.job.display_name))
        await emitter.emit("job.completed", event)
    """

    def __init__(self, logger: "loguru.Logger" = get_logger(__name__)) -> None:
        self._logger = logger
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def on(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler (sync or async) to an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: str, handler: EventHandler) -> None:
        """Unsubscribe a handler. Unknown handlers are logged and ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler not in handlers:
            self._logger.warning(f"Handler {handler} not found for event {event_type}")
            return
        handlers.remove(handler)
        if not handlers:
            self._handlers.pop(event_type, None)

    async def emit(self, event_type: str, event: BaseEvent) -> None:
        """Deliver event to every handler subscribed to event_type."""
        # Copy so handlers may unsubscribe while being dispatched
        for handler in list(self._handlers.get(event_type, [])):
            try:
                result = handler(event)
            except Exception:
                self._logger.exception(f"Handler {handler} failed for {event_type}")
                continue

            if inspect.isawaitable(result):
                try:
                    await result
                except Exception as exc:
                    self._logger.opt(exception=exc).error(
                        f"Async handler {handler} failed for {event_type}"
                    )
