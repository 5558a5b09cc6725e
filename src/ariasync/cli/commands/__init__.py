"""CLI commands."""

from .jobs import add, cancel, list_jobs, pause, resume, version, watch

__all__ = ["add", "cancel", "list_jobs", "pause", "resume", "version", "watch"]
