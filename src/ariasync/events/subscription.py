"""Handle returned to subscribers so they can detach later."""

from .base import BaseEmitter, EventHandler


class Subscription:
    """A live subscription of one handler to one event type.

    unsubscribe() is idempotent.
    """

    def __init__(
        self,
        emitter: BaseEmitter,
        event_type: str,
        handler: EventHandler,
    ) -> None:
        self._emitter = emitter
        self._event_type = event_type
        self._handler = handler
        self._active = True

    @property
    def event_type(self) -> str:
        return self._event_type

    @property
    def is_active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._emitter.off(self._event_type, self._handler)
        self._active = False
