"""Base model shared by all events."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseEvent(BaseModel):
    """Immutable event carrying the moment it occurred (UTC)."""

    model_config = ConfigDict(frozen=True)

    occurred_at: datetime = Field(
        default_factory=_utcnow, description="When the event occurred (UTC)"
    )
    event_type: str = Field(default="base", description="Event type identifier")
