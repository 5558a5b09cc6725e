"""Connection supervision: health checks and the reconnect driver."""

import asyncio
import typing as t

from ..domain.backoff import BackoffConfig
from ..domain.connection import ConnectionState, ConnectionStatus
from ..domain.exceptions import GatewayError
from ..events import BaseEmitter, ConnectionStateChangedEvent, NullEmitter
from ..gateway.base import BaseGateway
from ..infrastructure.logging import get_logger

if t.TYPE_CHECKING:
    import loguru


class ConnectionSupervisor:
    """Owns the connection state machine for the daemon link.

    verify() issues one bounded health check (the daemon version call) and
    moves the state to CONNECTED or FAILED. The retry driver started by
    start() keeps calling verify() while the link is down, waiting a linearly
    growing delay between attempts. It never gives up; the attempt counter
    wraps after BackoffConfig.reset_after attempts so delays restart small.

    While CONNECTED the driver sleeps until someone reports a failure through
    mark_failed() or a failed verify().

    Usage:
        supervisor = ConnectionSupervisor(gateway, BackoffConfig())
        await supervisor.start()
        ...
        await supervisor.stop()
    """

    def __init__(
        self,
        gateway: BaseGateway,
        backoff: BackoffConfig | None = None,
        verify_timeout: float = 3.0,
        emitter: BaseEmitter | None = None,
        logger: "loguru.Logger" = get_logger(__name__),
    ) -> None:
        """Initialise the supervisor.

        Args:
            gateway: Gateway whose version() call serves as the health check.
            backoff: Retry delay policy. Defaults to 2s base, +1s per attempt,
                10s cap, reset after 10 attempts.
            verify_timeout: Seconds before a health check counts as failed.
            emitter: Receives connection.changed events.
            logger: Logger instance.
        """
        self._gateway = gateway
        self._backoff = backoff or BackoffConfig()
        self._verify_timeout = verify_timeout
        self._emitter = emitter or NullEmitter()
        self._logger = logger
        self._state = ConnectionState.disconnected()
        self._attempt = 0
        self._daemon_version: str | None = None
        self._last_error: str | None = None
        self._verify_lock = asyncio.Lock()
        self._wakeup = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def attempt(self) -> int:
        """Reconnect attempts since the last success (wraps at reset_after)."""
        return self._attempt

    @property
    def daemon_version(self) -> str | None:
        """Version reported by the last successful health check."""
        return self._daemon_version

    @property
    def last_error(self) -> str | None:
        """Reason of the most recent failure, cleared by a successful check."""
        return self._last_error

    @property
    def is_running(self) -> bool:
        """True while the retry driver task is alive."""
        return self._task is not None and not self._task.done()

    async def verify(self) -> bool:
        """Run one health check and update the connection state.

        Concurrent callers share the check in flight instead of issuing
        their own.

        Returns:
            True if the daemon answered within verify_timeout.
        """
        if self._verify_lock.locked():
            async with self._verify_lock:
                return self._state.is_connected

        async with self._verify_lock:
            if self._state.status == ConnectionStatus.DISCONNECTED:
                await self._transition(ConnectionState.connecting())

            try:
                version = await asyncio.wait_for(
                    self._gateway.version(), timeout=self._verify_timeout
                )
            except asyncio.TimeoutError:
                await self._fail(
                    f"Health check timed out after {self._verify_timeout:g}s"
                )
                return False
            except GatewayError as exc:
                await self._fail(str(exc))
                return False

            if not self._state.is_connected:
                self._logger.info(f"Connected to daemon (version {version})")
            self._daemon_version = version
            self._last_error = None
            self._attempt = 0
            await self._transition(ConnectionState.connected())
            return True

    async def mark_failed(self, reason: str) -> None:
        """Report a connectivity failure observed outside verify()."""
        await self._fail(reason)

    async def start(self) -> None:
        """Start the retry driver. Calling start() twice is a no-op."""
        if self.is_running:
            self._logger.debug("Connection supervisor already running")
            return
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Cancel the retry driver and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def run(self) -> None:
        """Retry driver loop. Runs until cancelled."""
        self._logger.debug("Connection retry driver started")
        while True:
            if self._state.is_connected:
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            if await self.verify():
                continue

            self._attempt = self._backoff.next_attempt(self._attempt)
            delay = self._backoff.delay_for(self._attempt)
            self._logger.warning(
                f"Daemon unavailable ({self._state.reason}), "
                f"retrying in {delay:.1f}s (attempt {self._attempt})"
            )
            self._wakeup.clear()
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    async def _fail(self, reason: str) -> None:
        self._last_error = reason
        await self._transition(ConnectionState.failed(reason))

    async def _transition(self, new_state: ConnectionState) -> None:
        previous = self._state
        if previous == new_state:
            return
        self._state = new_state

        if new_state.is_failed and not previous.is_failed:
            self._logger.warning(f"Connection to daemon lost: {new_state.reason}")
        else:
            self._logger.debug(f"Connection state {previous} -> {new_state}")

        # Wake the driver on entering or leaving CONNECTED only; failures
        # reported while it is backing off must not shorten the delay.
        if new_state.is_connected or previous.is_connected:
            self._wakeup.set()

        await self._emitter.emit(
            "connection.changed",
            ConnectionStateChangedEvent(previous=previous, current=new_state),
        )
