"""Abstract contract for the daemon RPC gateway."""

import typing as t
from abc import ABC, abstractmethod

from ..domain.jobs import JobSnapshot


class BaseGateway(ABC):
    """Issues the fixed set of remote job operations.

    Implementations never retry: every failure is raised once, classified as
    GatewayConnectivityError, GatewayProtocolError or RemoteJobNotFoundError.
    Retry policy belongs to the caller.
    """

    async def open(self) -> None:
        """Acquire transport resources. Default is a no-op."""
        pass

    async def close(self) -> None:
        """Release transport resources. Default is a no-op."""
        pass

    @abstractmethod
    async def add_job(
        self, locator: str, options: t.Mapping[str, str] | None = None
    ) -> str:
        """Submit a new job and return the daemon-assigned handle."""
        pass

    @abstractmethod
    async def query_status(self, handle: str) -> str:
        """Return the raw daemon status string of one job."""
        pass

    @abstractmethod
    async def query_active(self) -> list[JobSnapshot]:
        """Snapshots of jobs currently transferring."""
        pass

    @abstractmethod
    async def query_waiting(self, offset: int, count: int) -> list[JobSnapshot]:
        """Snapshots of waiting and paused jobs."""
        pass

    @abstractmethod
    async def query_stopped(self, offset: int, count: int) -> list[JobSnapshot]:
        """Snapshots of completed, errored and removed jobs."""
        pass

    @abstractmethod
    async def pause(self, handle: str) -> bool:
        pass

    @abstractmethod
    async def resume(self, handle: str) -> bool:
        pass

    @abstractmethod
    async def remove(self, handle: str) -> bool:
        pass

    @abstractmethod
    async def version(self) -> str:
        """Daemon version; used as the lightweight health check."""
        pass
