"""Domain models - jobs, phases, connection state, backoff and exceptions."""

from .backoff import BackoffConfig
from .connection import ConnectionState, ConnectionStatus
from .exceptions import (
    AriaSyncError,
    ConfigurationError,
    EngineNotStartedError,
    GatewayConnectivityError,
    GatewayError,
    GatewayNotInitialisedError,
    GatewayProtocolError,
    InvalidTransitionError,
    JobNotFoundError,
    PersistenceError,
    RemoteJobNotFoundError,
)
from .jobs import JobRecord, JobSnapshot, Phase

__all__ = [
    "BackoffConfig",
    "ConnectionState",
    "ConnectionStatus",
    "JobRecord",
    "JobSnapshot",
    "Phase",
    # Exceptions
    "AriaSyncError",
    "ConfigurationError",
    "EngineNotStartedError",
    "GatewayError",
    "GatewayConnectivityError",
    "GatewayProtocolError",
    "GatewayNotInitialisedError",
    "RemoteJobNotFoundError",
    "PersistenceError",
    "JobNotFoundError",
    "InvalidTransitionError",
]
