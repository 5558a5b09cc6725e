"""Events describing changes to individual jobs."""

from pydantic import Field

from ...domain.jobs import JobRecord, Phase
from .base import BaseEvent


class JobEvent(BaseEvent):
    """Base class for job events.

    Every job event carries the record as it was right after the change.
    """

    job: JobRecord = Field(description="Record after the change")
    event_type: str = Field(default="job.base")

    @property
    def job_id(self) -> str:
        return self.job.id


class JobAddedEvent(JobEvent):
    """A job was submitted through this client and accepted by the daemon."""

    event_type: str = Field(default="job.added")


class JobDiscoveredEvent(JobEvent):
    """A reconciliation pass found a job this client did not know about."""

    event_type: str = Field(default="job.discovered")


class JobPhaseChangedEvent(JobEvent):
    """A job moved between phases.

    source is "daemon" for observed changes and "local" for optimistic ones.
    """

    event_type: str = Field(default="job.phase_changed")
    previous_phase: Phase = Field(description="Phase before the change")
    source: str = Field(default="daemon", description="daemon or local")


class JobCompletedEvent(JobEvent):
    """A job reached COMPLETED for the first time."""

    event_type: str = Field(default="job.completed")


class JobRemovedEvent(JobEvent):
    """A job was cancelled and removed from the model and the store."""

    event_type: str = Field(default="job.removed")
