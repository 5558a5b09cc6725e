"""Abstract base class for job record stores."""

from abc import ABC, abstractmethod

from ..domain.jobs import JobRecord


class BaseRecordStore(ABC):
    """Durable key-value persistence of one record per local job id.

    The store is a cache across restarts; the daemon stays authoritative for
    phase. Implementations raise PersistenceError on I/O failure.
    """

    @abstractmethod
    async def put(self, record: JobRecord) -> None:
        """Create or replace the record stored under record.id."""
        pass

    @abstractmethod
    async def delete(self, job_id: str) -> None:
        """Delete the record for job_id. Missing records are a no-op."""
        pass

    @abstractmethod
    async def list_all(self) -> list[JobRecord]:
        """Return every stored record."""
        pass
