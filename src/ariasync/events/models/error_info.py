"""Serialisable description of an exception."""

from pydantic import BaseModel, ConfigDict, Field


class ErrorInfo(BaseModel):
    """Exception type and message, safe to hand to any subscriber."""

    model_config = ConfigDict(frozen=True)

    exc_type: str = Field(description="Exception class name")
    message: str = Field(default="", description="Exception message")

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        return cls(exc_type=type(exc).__name__, message=str(exc))
