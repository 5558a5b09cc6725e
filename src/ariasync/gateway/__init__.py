"""Daemon RPC gateway - contract, aria2 implementation and parsing."""

from .aria2 import Aria2Gateway
from .base import BaseGateway
from .categoriser import ErrorCategoriser
from .parsing import parse_snapshot, parse_snapshots

__all__ = [
    "Aria2Gateway",
    "BaseGateway",
    "ErrorCategoriser",
    "parse_snapshot",
    "parse_snapshots",
]
