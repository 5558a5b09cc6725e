"""Job model aggregate and the published read model."""

import typing as t
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from ..domain.connection import ConnectionState
from ..domain.exceptions import JobNotFoundError
from ..domain.jobs import JobRecord, JobSnapshot, Phase
from ..events.models import ModelUpdatedEvent
from .correlation import HandleCorrelator

# Phases listed in the active view; PENDING jobs are about to transfer.
ACTIVE_VIEW_PHASES: t.Final[frozenset[Phase]] = frozenset(
    {Phase.ACTIVE, Phase.PENDING}
)


class ModelSnapshot(BaseModel):
    """Immutable, internally consistent view of the whole model.

    The phase-partitioned lists are disjoint subsets of all_jobs. FAILED jobs
    appear only in all_jobs. Rate totals are summed over active_jobs with
    unknown rates counted as zero.
    """

    model_config = ConfigDict(frozen=True)

    all_jobs: tuple[JobRecord, ...] = Field(default=())
    active_jobs: tuple[JobRecord, ...] = Field(default=())
    paused_jobs: tuple[JobRecord, ...] = Field(default=())
    completed_jobs: tuple[JobRecord, ...] = Field(default=())
    total_download_rate: int = Field(default=0, ge=0)
    total_upload_rate: int = Field(default=0, ge=0)
    connection_state: ConnectionState = Field(default_factory=ConnectionState)
    last_error: str | None = Field(default=None)

    def get(self, job_id: str) -> JobRecord | None:
        for record in self.all_jobs:
            if record.id == job_id:
                return record
        return None


@dataclass
class MergeResult:
    """What a reconciliation merge changed.

    changed holds records that must be persisted: new ones, those whose phase
    moved and those that were stamped completed.
    """

    changed: list[JobRecord] = field(default_factory=list)
    discovered: list[JobRecord] = field(default_factory=list)
    bound: list[JobRecord] = field(default_factory=list)
    phase_changes: list[tuple[JobRecord, Phase]] = field(default_factory=list)
    completed: list[JobRecord] = field(default_factory=list)
    updated: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.changed) or self.updated > 0


@dataclass(frozen=True)
class _Views:
    all_jobs: tuple[JobRecord, ...] = ()
    active_jobs: tuple[JobRecord, ...] = ()
    paused_jobs: tuple[JobRecord, ...] = ()
    completed_jobs: tuple[JobRecord, ...] = ()
    total_download_rate: int = 0
    total_upload_rate: int = 0


def _build_views(records: t.Iterable[JobRecord]) -> _Views:
    all_jobs = tuple(records)
    active = tuple(r for r in all_jobs if r.phase in ACTIVE_VIEW_PHASES)
    return _Views(
        all_jobs=all_jobs,
        active_jobs=active,
        paused_jobs=tuple(r for r in all_jobs if r.phase == Phase.PAUSED),
        completed_jobs=tuple(r for r in all_jobs if r.phase == Phase.COMPLETED),
        total_download_rate=sum(r.download_rate or 0 for r in active),
        total_upload_rate=sum(r.upload_rate or 0 for r in active),
    )


class JobModel:
    """The single in-memory collection of JobRecords, keyed by local id.

    All mutation goes through this class and is expected to happen while the
    engine's owner lock is held. Every mutation commits a complete new set of
    records and rebuilds the published views in one step, so readers never see
    a partially merged model.

    Local writes (optimistic updates from user operations) are stamped with a
    monotonically increasing sequence number. A merge started before a local
    write must not overwrite that job's phase with its older observation.
    """

    def __init__(self, correlator: HandleCorrelator | None = None) -> None:
        self.correlator = correlator or HandleCorrelator()
        self.last_error: str | None = None
        self._records: dict[str, JobRecord] = {}
        self._by_handle: dict[str, str] = {}
        self._local_writes: dict[str, int] = {}
        self._sequence = 0
        self._views = _Views()

    @property
    def write_sequence(self) -> int:
        """Sequence number of the most recent local write."""
        return self._sequence

    @property
    def views(self) -> _Views:
        return self._views

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._records

    def get(self, job_id: str) -> JobRecord | None:
        return self._records.get(job_id)

    def require(self, job_id: str) -> JobRecord:
        record = self._records.get(job_id)
        if record is None:
            raise JobNotFoundError(job_id)
        return record

    def find_by_handle(self, handle: str) -> JobRecord | None:
        job_id = self._by_handle.get(handle)
        return self._records.get(job_id) if job_id else None

    def load(self, records: t.Iterable[JobRecord]) -> int:
        """Replace the model with restored records, ordered by creation time."""
        ordered = sorted(records, key=lambda r: r.created_at)
        self._records = {record.id: record for record in ordered}
        self._by_handle = {
            record.remote_handle: record.id
            for record in ordered
            if record.remote_handle
        }
        self._local_writes.clear()
        self._publish()
        return len(self._records)

    def write_local(self, record: JobRecord) -> JobRecord | None:
        """Commit an optimistic update made by a user operation.

        Returns the record previously stored under the same id, if any.
        """
        previous = self._records.get(record.id)
        records = dict(self._records)
        records[record.id] = record
        self._records = records
        if record.remote_handle:
            self._by_handle[record.remote_handle] = record.id
            self.correlator.clear_pending([record.remote_handle])
        self._sequence += 1
        self._local_writes[record.id] = self._sequence
        self._publish()
        return previous

    def observe(self, record: JobRecord) -> None:
        """Commit an update derived from a single daemon observation."""
        if record.id not in self._records:
            raise JobNotFoundError(record.id)
        records = dict(self._records)
        records[record.id] = record
        self._records = records
        self._publish()

    def remove(self, job_id: str) -> JobRecord | None:
        """Drop a record and tombstone its handle."""
        if job_id not in self._records:
            return None
        records = dict(self._records)
        record = records.pop(job_id)
        self._records = records
        self._sequence += 1
        if record.remote_handle:
            self._by_handle.pop(record.remote_handle, None)
            self.correlator.tombstone(record.remote_handle, self._sequence)
        self._local_writes.pop(job_id, None)
        self._publish()
        return record

    def merge(
        self,
        snapshots: t.Sequence[JobSnapshot],
        since_sequence: int | None = None,
        complete: bool = True,
    ) -> MergeResult:
        """Fold a complete set of daemon snapshots into the model.

        The merge is computed against a working copy and committed at the end,
        so an exception part way through leaves the model untouched.

        Args:
            snapshots: Every snapshot gathered by one reconciliation pass.
            since_sequence: write_sequence captured when the pass started.
                Jobs written locally after that point keep their phase.
            complete: False when the pass was truncated, so handles missing
                from snapshots may still exist on the daemon.

        Returns:
            A MergeResult describing what changed.
        """
        working = dict(self._records)
        by_handle = dict(self._by_handle)
        bound_handles: list[str] = []
        seen: set[str] = set()
        result = MergeResult()

        for snapshot in snapshots:
            handle = snapshot.handle
            if handle in seen or self.correlator.is_tombstoned(handle):
                continue
            seen.add(handle)

            job_id, origin = self.correlator.resolve(handle, by_handle)
            current = working.get(job_id)

            if current is None:
                record = JobRecord.from_snapshot(snapshot, job_id)
                working[record.id] = record
                by_handle[handle] = record.id
                result.changed.append(record)
                if origin == "pending":
                    bound_handles.append(handle)
                    result.bound.append(record)
                else:
                    result.discovered.append(record)
                if record.completed_at is not None:
                    result.completed.append(record)
                continue

            if origin == "pending":
                bound_handles.append(handle)
                by_handle[handle] = job_id

            written_after = self._local_writes.get(job_id, -1)
            keep_phase = since_sequence is not None and written_after > since_sequence
            updated = current.apply_snapshot(snapshot, include_phase=not keep_phase)
            if updated == current:
                continue

            working[job_id] = updated
            if updated.phase != current.phase:
                result.phase_changes.append((updated, current.phase))
            if current.completed_at is None and updated.completed_at is not None:
                result.completed.append(updated)
            if (
                updated.phase != current.phase
                or updated.completed_at != current.completed_at
            ):
                result.changed.append(updated)
            else:
                result.updated += 1

        self._records = working
        self._by_handle = by_handle
        self.correlator.clear_pending(bound_handles)
        if complete:
            self.correlator.prune_tombstones(
                {s.handle for s in snapshots}, since_sequence
            )
        self._publish()
        return result

    def snapshot(self, connection_state: ConnectionState) -> ModelSnapshot:
        views = self._views
        return ModelSnapshot(
            all_jobs=views.all_jobs,
            active_jobs=views.active_jobs,
            paused_jobs=views.paused_jobs,
            completed_jobs=views.completed_jobs,
            total_download_rate=views.total_download_rate,
            total_upload_rate=views.total_upload_rate,
            connection_state=connection_state,
            last_error=self.last_error,
        )

    def updated_event(self) -> ModelUpdatedEvent:
        views = self._views
        return ModelUpdatedEvent(
            total=len(views.all_jobs),
            active=len(views.active_jobs),
            paused=len(views.paused_jobs),
            completed=len(views.completed_jobs),
            total_download_rate=views.total_download_rate,
            total_upload_rate=views.total_upload_rate,
        )

    def _publish(self) -> None:
        self._views = _build_views(self._records.values())
