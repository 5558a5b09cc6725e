"""Core domain models for download jobs."""

import enum
import typing as t
import uuid
from datetime import datetime, timezone
from urllib.parse import unquote, urlsplit

from pydantic import BaseModel, ConfigDict, Field


class Phase(enum.StrEnum):
    """Job lifecycle phases.

    Flow: PENDING -> ACTIVE -> (PAUSED | COMPLETED | FAILED), PAUSED -> ACTIVE
    """

    PENDING = "pending"  # Accepted, waiting for a slot
    ACTIVE = "active"  # Transferring
    PAUSED = "paused"  # Held by the user
    COMPLETED = "completed"  # Finished (terminal)
    FAILED = "failed"  # Errored (terminal)

    @classmethod
    def from_daemon(cls, status: str | None) -> "Phase":
        """Translate a daemon status string.

        Unrecognised values map to PENDING rather than failing.
        """
        return _DAEMON_PHASES.get(status or "", cls.PENDING)

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.COMPLETED, Phase.FAILED)

    def can_transition_to(self, target: "Phase") -> bool:
        """Whether a client-side update may move a job from this phase to target."""
        return target in _TRANSITIONS[self]


_DAEMON_PHASES: t.Final[dict[str, Phase]] = {
    "active": Phase.ACTIVE,
    "waiting": Phase.PENDING,
    "paused": Phase.PAUSED,
    "complete": Phase.COMPLETED,
    "removed": Phase.COMPLETED,
    "error": Phase.FAILED,
}

_TRANSITIONS: t.Final[dict[Phase, frozenset[Phase]]] = {
    Phase.PENDING: frozenset(
        {Phase.ACTIVE, Phase.PAUSED, Phase.COMPLETED, Phase.FAILED}
    ),
    Phase.ACTIVE: frozenset({Phase.PAUSED, Phase.COMPLETED, Phase.FAILED}),
    Phase.PAUSED: frozenset({Phase.ACTIVE}),
    Phase.COMPLETED: frozenset(),
    Phase.FAILED: frozenset(),
}


def new_job_id() -> str:
    """Mint a stable local identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def name_from_locator(locator: str | None) -> str | None:
    """Derive a file name from the last path segment of a URI."""
    if not locator:
        return None
    segment = unquote(urlsplit(locator).path).rstrip("/").rsplit("/", 1)[-1]
    return segment or None


class JobSnapshot(BaseModel):
    """Daemon-reported point-in-time view of one job."""

    model_config = ConfigDict(frozen=True)

    handle: str = Field(min_length=1, description="Daemon-assigned job handle")
    locator: str | None = Field(default=None, description="Origin URI or magnet link")
    display_name: str | None = Field(
        default=None, description="File name reported by the daemon"
    )
    total_size: int | None = Field(
        default=None, ge=0, description="Total size in bytes if known"
    )
    transferred_size: int = Field(default=0, ge=0, description="Bytes transferred")
    download_rate: int | None = Field(
        default=None, ge=0, description="Download rate in bytes/second"
    )
    upload_rate: int | None = Field(
        default=None, ge=0, description="Upload rate in bytes/second"
    )
    status: str = Field(default="", description="Raw daemon status string")

    @property
    def phase(self) -> Phase:
        return Phase.from_daemon(self.status)


class JobRecord(BaseModel):
    """One download job as the engine tracks and persists it.

    Records are immutable; updates produce a new record via model_copy so
    consumers never share a mutable reference with the engine. Unknown fields
    in persisted documents are ignored to stay forward compatible.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(default_factory=new_job_id, description="Stable local identifier")
    remote_handle: str = Field(default="", description="Daemon job handle")
    source_locator: str = Field(default="", description="Origin URI")
    display_name: str = Field(default="download", description="File name")
    total_size: int | None = Field(default=None, ge=0)
    transferred_size: int = Field(default=0, ge=0)
    download_rate: int | None = Field(default=None, ge=0)
    upload_rate: int | None = Field(default=None, ge=0)
    phase: Phase = Field(default=Phase.PENDING)
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = Field(default=None)

    @property
    def progress(self) -> float:
        """Progress as a fraction (0.0 to 1.0)."""
        if not self.total_size:
            return 0.0
        return min(self.transferred_size / self.total_size, 1.0)

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    def with_phase(self, phase: Phase, at: datetime | None = None) -> "JobRecord":
        """Return a copy in the given phase.

        completed_at is stamped the first time the phase becomes COMPLETED and
        is never overwritten afterwards.
        """
        update: dict[str, t.Any] = {"phase": phase}
        if phase == Phase.COMPLETED and self.completed_at is None:
            update["completed_at"] = at or utcnow()
        return self.model_copy(update=update)

    @classmethod
    def from_snapshot(
        cls, snapshot: JobSnapshot, job_id: str | None = None
    ) -> "JobRecord":
        """Build a record for a job first seen in a daemon snapshot."""
        record = cls(
            id=job_id or new_job_id(),
            remote_handle=snapshot.handle,
            source_locator=snapshot.locator or "",
            display_name=(
                snapshot.display_name
                or name_from_locator(snapshot.locator)
                or "download"
            ),
        )
        return record.apply_snapshot(snapshot)

    def apply_snapshot(
        self, snapshot: JobSnapshot, *, include_phase: bool = True
    ) -> "JobRecord":
        """Return a copy carrying the snapshot's mutable fields."""
        update: dict[str, t.Any] = {
            "total_size": snapshot.total_size,
            "transferred_size": snapshot.transferred_size,
            "download_rate": snapshot.download_rate,
            "upload_rate": snapshot.upload_rate,
        }
        if snapshot.display_name:
            update["display_name"] = snapshot.display_name
        if not self.source_locator and snapshot.locator:
            update["source_locator"] = snapshot.locator
        record = self.model_copy(update=update)
        if include_phase:
            record = record.with_phase(snapshot.phase)
        return record
