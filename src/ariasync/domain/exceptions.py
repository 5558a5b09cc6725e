"""Custom exceptions for the ariasync engine."""


class AriaSyncError(Exception):
    """Base exception for all ariasync errors."""

    pass


class EngineNotStartedError(AriaSyncError):
    """Raised when the engine is used before start() or outside its context."""

    pass


class GatewayError(AriaSyncError):
    """Base exception for failed daemon RPC calls.

    Attributes:
        method: RPC method that failed, when known.
    """

    def __init__(self, message: str, *, method: str | None = None) -> None:
        self.method = method
        super().__init__(message)


class GatewayConnectivityError(GatewayError):
    """Daemon unreachable, connection refused, timed out or 5xx.

    Drives the connection state to FAILED and triggers reconnection.
    """

    pass


class GatewayProtocolError(GatewayError):
    """Response had an unexpected shape or the daemon rejected the call.

    Treated as a failed call for that operation only.
    """

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        code: int | None = None,
    ) -> None:
        self.code = code
        super().__init__(message, method=method)


class RemoteJobNotFoundError(GatewayProtocolError):
    """The daemon does not know the handle (e.g. job already removed)."""

    def __init__(
        self,
        handle: str,
        *,
        method: str | None = None,
        code: int | None = None,
    ) -> None:
        self.handle = handle
        super().__init__(f"Handle {handle} not found", method=method, code=code)


class GatewayNotInitialisedError(AriaSyncError):
    """Raised when the gateway is called before open() or after close()."""

    pass


class PersistenceError(AriaSyncError):
    """Raised when the record store cannot read or write a record."""

    pass


class ConfigurationError(AriaSyncError):
    """Raised when a setting from the environment cannot be parsed.

    Attributes:
        variable: Environment variable holding the bad value.
    """

    def __init__(self, variable: str, raw: str, reason: str) -> None:
        self.variable = variable
        super().__init__(f"Invalid value for {variable}: {raw!r} ({reason})")


class JobNotFoundError(AriaSyncError):
    """Raised when an operation names a local id the model does not hold."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"No job with id {job_id}")


class InvalidTransitionError(AriaSyncError):
    """Raised when an optimistic update would break the phase state machine."""

    def __init__(self, job_id: str, current: str, target: str) -> None:
        self.job_id = job_id
        self.current = current
        self.target = target
        super().__init__(f"Job {job_id} cannot move from {current} to {target}")
