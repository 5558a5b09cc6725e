"""Connection state of the daemon link."""

import enum

from pydantic import BaseModel, ConfigDict, Field


class ConnectionStatus(enum.StrEnum):
    """Connection lifecycle states.

    Flow: DISCONNECTED -> CONNECTING -> (CONNECTED | FAILED), FAILED <-> CONNECTED
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class ConnectionState(BaseModel):
    """Immutable value of the connection state machine.

    reason is only set when status is FAILED.
    """

    model_config = ConfigDict(frozen=True)

    status: ConnectionStatus = Field(default=ConnectionStatus.DISCONNECTED)
    reason: str | None = Field(default=None, description="Why the link failed")

    @classmethod
    def disconnected(cls) -> "ConnectionState":
        return cls(status=ConnectionStatus.DISCONNECTED)

    @classmethod
    def connecting(cls) -> "ConnectionState":
        return cls(status=ConnectionStatus.CONNECTING)

    @classmethod
    def connected(cls) -> "ConnectionState":
        return cls(status=ConnectionStatus.CONNECTED)

    @classmethod
    def failed(cls, reason: str) -> "ConnectionState":
        return cls(status=ConnectionStatus.FAILED, reason=reason)

    @property
    def is_connected(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED

    @property
    def is_failed(self) -> bool:
        return self.status == ConnectionStatus.FAILED

    def __str__(self) -> str:
        if self.reason:
            return f"{self.status.value}({self.reason})"
        return self.status.value
