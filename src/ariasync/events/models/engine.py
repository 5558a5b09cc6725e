"""Events emitted by the supervisor, the reconciler and the engine."""

from pydantic import Field

from ...domain.connection import ConnectionState
from .base import BaseEvent
from .error_info import ErrorInfo


class ConnectionStateChangedEvent(BaseEvent):
    """The connection state machine moved to a new state."""

    event_type: str = Field(default="connection.changed")
    previous: ConnectionState = Field(description="State before the transition")
    current: ConnectionState = Field(description="State after the transition")


class ModelUpdatedEvent(BaseEvent):
    """The published read model was refreshed.

    Carries summary numbers; fetch the full snapshot from the engine.
    """

    event_type: str = Field(default="model.updated")
    total: int = Field(default=0, ge=0)
    active: int = Field(default=0, ge=0)
    paused: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    total_download_rate: int = Field(default=0, ge=0)
    total_upload_rate: int = Field(default=0, ge=0)


class ReconcileFailedEvent(BaseEvent):
    """A reconciliation pass was abandoned; the model was left unchanged."""

    event_type: str = Field(default="reconcile.failed")
    error: ErrorInfo = Field(description="Gateway failure that aborted the pass")


class EngineErrorEvent(BaseEvent):
    """A user-initiated operation failed; local state was not changed."""

    event_type: str = Field(default="engine.error")
    operation: str = Field(description="add, pause, resume, cancel or refresh")
    job_id: str | None = Field(default=None)
    error: ErrorInfo = Field(description="Failure details")
