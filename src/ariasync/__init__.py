"""ariasync - resilient client engine for a remote aria2 download daemon."""

from .app import App, create_app, create_engine
from .config import Settings, build_settings, settings_from_env
from .domain import (
    AriaSyncError,
    ConnectionState,
    ConnectionStatus,
    GatewayConnectivityError,
    GatewayError,
    GatewayProtocolError,
    InvalidTransitionError,
    JobNotFoundError,
    JobRecord,
    JobSnapshot,
    Phase,
    RemoteJobNotFoundError,
)
from .engine import DownloadEngine, ModelSnapshot
from .gateway import Aria2Gateway, BaseGateway
from .storage import BaseRecordStore, InMemoryRecordStore, JsonRecordStore

__all__ = [
    # Wiring
    "App",
    "create_app",
    "create_engine",
    "Settings",
    "build_settings",
    "settings_from_env",
    # Engine
    "DownloadEngine",
    "ModelSnapshot",
    # Domain
    "JobRecord",
    "JobSnapshot",
    "Phase",
    "ConnectionState",
    "ConnectionStatus",
    # Gateway and storage
    "BaseGateway",
    "Aria2Gateway",
    "BaseRecordStore",
    "InMemoryRecordStore",
    "JsonRecordStore",
    # Errors
    "AriaSyncError",
    "GatewayError",
    "GatewayConnectivityError",
    "GatewayProtocolError",
    "RemoteJobNotFoundError",
    "JobNotFoundError",
    "InvalidTransitionError",
]
