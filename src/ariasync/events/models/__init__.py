"""Event data models."""

from .base import BaseEvent
from .engine import (
    ConnectionStateChangedEvent,
    EngineErrorEvent,
    ModelUpdatedEvent,
    ReconcileFailedEvent,
)
from .error_info import ErrorInfo
from .job import (
    JobAddedEvent,
    JobCompletedEvent,
    JobDiscoveredEvent,
    JobEvent,
    JobPhaseChangedEvent,
    JobRemovedEvent,
)

__all__ = [
    "BaseEvent",
    "ErrorInfo",
    "ConnectionStateChangedEvent",
    "EngineErrorEvent",
    "ModelUpdatedEvent",
    "ReconcileFailedEvent",
    "JobEvent",
    "JobAddedEvent",
    "JobDiscoveredEvent",
    "JobPhaseChangedEvent",
    "JobCompletedEvent",
    "JobRemovedEvent",
]
