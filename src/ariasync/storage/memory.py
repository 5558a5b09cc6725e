"""In-memory record store."""

from ..domain.jobs import JobRecord
from .base import BaseRecordStore


class InMemoryRecordStore(BaseRecordStore):
    """Keeps records in a dict for the lifetime of the process.

    Use when persistence across restarts is not wanted, and in tests.
    """

    def __init__(self, records: list[JobRecord] | None = None) -> None:
        self._records: dict[str, JobRecord] = {
            record.id: record for record in records or []
        }

    async def put(self, record: JobRecord) -> None:
        self._records[record.id] = record

    async def delete(self, job_id: str) -> None:
        self._records.pop(job_id, None)

    async def list_all(self) -> list[JobRecord]:
        return list(self._records.values())

    def get(self, job_id: str) -> JobRecord | None:
        """Synchronous lookup, mainly for assertions."""
        return self._records.get(job_id)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._records

    def __len__(self) -> int:
        return len(self._records)
