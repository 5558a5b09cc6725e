"""Event infrastructure - event emitter, subscriptions and event types."""

from .base import BaseEmitter
from .emitter import EventEmitter
from .models import (
    BaseEvent,
    ConnectionStateChangedEvent,
    EngineErrorEvent,
    ErrorInfo,
    JobAddedEvent,
    JobCompletedEvent,
    JobDiscoveredEvent,
    JobEvent,
    JobPhaseChangedEvent,
    JobRemovedEvent,
    ModelUpdatedEvent,
    ReconcileFailedEvent,
)
from .null import NullEmitter
from .subscription import Subscription

__all__ = [
    # Base and implementations
    "BaseEmitter",
    "EventEmitter",
    "NullEmitter",
    "Subscription",
    # Event models
    "BaseEvent",
    "ErrorInfo",
    "ConnectionStateChangedEvent",
    "ModelUpdatedEvent",
    "ReconcileFailedEvent",
    "EngineErrorEvent",
    "JobEvent",
    "JobAddedEvent",
    "JobDiscoveredEvent",
    "JobPhaseChangedEvent",
    "JobCompletedEvent",
    "JobRemovedEvent",
]
