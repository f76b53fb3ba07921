"""nodemon package exports."""

from nodemon.model import Disk, LocalState
from nodemon.monitor import LocalMonitor, MonitorStatus, RefreshFailure
from nodemon.probe import ProbeFailure, ProbeFailureKind, VolumeStats, probe, probe_async

__all__ = [
    "Disk",
    "LocalMonitor",
    "LocalState",
    "MonitorStatus",
    "ProbeFailure",
    "ProbeFailureKind",
    "RefreshFailure",
    "VolumeStats",
    "probe",
    "probe_async",
]
