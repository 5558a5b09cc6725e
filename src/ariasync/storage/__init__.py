"""Record stores - durable mirror of job records keyed by local id."""

from .base import BaseRecordStore
from .json_store import JsonRecordStore
from .memory import InMemoryRecordStore

__all__ = [
    "BaseRecordStore",
    "InMemoryRecordStore",
    "JsonRecordStore",
]
