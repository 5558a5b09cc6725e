"""Correlation of daemon handles with stable local ids."""

import typing as t

from ..domain.jobs import new_job_id


class HandleCorrelator:
    """Tracks handles returned by add_job until a record is bound to them.

    Between the daemon accepting a job and the engine committing the local
    record, a reconciliation pass may already see the new handle. The pending
    map lets that pass reuse the id the engine minted instead of inventing a
    second one.

    Handles of cancelled jobs are tombstoned so that a daemon still listing
    them (e.g. in its stopped queue) does not resurrect the job under a new id.
    A tombstone lives until a complete pass that started after it stops
    reporting its handle.
    """

    def __init__(self) -> None:
        self._pending: dict[str, str] = {}
        self._tombstones: dict[str, int] = {}

    def register_pending(self, handle: str, job_id: str) -> None:
        self._pending[handle] = job_id

    def pending_id(self, handle: str) -> str | None:
        return self._pending.get(handle)

    def clear_pending(self, handles: t.Iterable[str]) -> None:
        for handle in handles:
            self._pending.pop(handle, None)

    @property
    def pending(self) -> dict[str, str]:
        return dict(self._pending)

    def tombstone(self, handle: str, sequence: int = 0) -> None:
        if handle:
            self._tombstones[handle] = sequence
            self._pending.pop(handle, None)

    def is_tombstoned(self, handle: str) -> bool:
        return handle in self._tombstones

    def prune_tombstones(
        self, reported: t.Collection[str], since_sequence: int | None = None
    ) -> None:
        """Forget tombstones for handles a complete pass no longer reports.

        Tombstones stamped after since_sequence are kept, since the pass may
        have listed the queues before the job was cancelled.
        """
        self._tombstones = {
            handle: stamp
            for handle, stamp in self._tombstones.items()
            if handle in reported
            or (since_sequence is not None and stamp > since_sequence)
        }

    @property
    def tombstones(self) -> frozenset[str]:
        return frozenset(self._tombstones)

    def resolve(
        self, handle: str, known: t.Mapping[str, str]
    ) -> tuple[str, str]:
        """Resolve the local id for a snapshot handle without mutating state.

        Args:
            handle: Daemon handle from the snapshot.
            known: Index of handles already bound to records.

        Returns:
            (job_id, origin) where origin is "known", "pending" or "minted".
        """
        job_id = known.get(handle)
        if job_id is not None:
            return job_id, "known"

        job_id = self._pending.get(handle)
        if job_id is not None:
            return job_id, "pending"

        return new_job_id(), "minted"
