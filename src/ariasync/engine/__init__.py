"""Engine - connection supervision, reconciliation and the job model."""

from .correlation import HandleCorrelator
from .engine import DownloadEngine
from .model import ACTIVE_VIEW_PHASES, JobModel, MergeResult, ModelSnapshot
from .reconciler import Reconciler
from .supervisor import ConnectionSupervisor

__all__ = [
    "DownloadEngine",
    "ConnectionSupervisor",
    "Reconciler",
    "JobModel",
    "MergeResult",
    "ModelSnapshot",
    "HandleCorrelator",
    "ACTIVE_VIEW_PHASES",
]
