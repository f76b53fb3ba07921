"""
nodemon.evaluate
AUTHOR: carter-vin

Storage space assessment based on a published snapshot
"""

from __future__ import annotations

from dataclasses import dataclass

from nodemon.model import Disk, LocalState

GIB = 1024 * 1024 * 1024

ALERT_FREE_PCT = 5.0
ALERT_FREE_BYTES = 0
MIN_FREE_BYTES = 5 * GIB


@dataclass(frozen=True)
class SpaceThresholds:
    """
    - alert_free_pct / alert_free_bytes: below the larger of the two -> low space
    - min_free_bytes: below this -> degraded (writes at risk)
    """

    alert_free_pct: float = ALERT_FREE_PCT
    alert_free_bytes: int = ALERT_FREE_BYTES
    min_free_bytes: int = MIN_FREE_BYTES


def _alert_floor(disk: Disk, thresholds: SpaceThresholds) -> float:
    pct_floor = disk.total_bytes * (thresholds.alert_free_pct / 100.0)
    return max(float(thresholds.alert_free_bytes), pct_floor)


def evaluate_space(
    state: LocalState,
    thresholds: SpaceThresholds | None = None,
) -> tuple[str, list[str]]:
    """
    Evaluate health and reasons from disk free space
    """
    if thresholds is None:
        thresholds = SpaceThresholds()

    if state.is_empty:
        return "UNKNOWN", ["state:not_monitored"]

    reason_set: set[str] = set()

    for disk in state.disks:
        if disk.free_bytes < thresholds.min_free_bytes:
            reason_set.add(f"space:degraded:{disk.mount_path}")
        elif disk.free_bytes < _alert_floor(disk, thresholds):
            reason_set.add(f"space:low:{disk.mount_path}")

    reasons = sorted(reason_set)

    if any(reason.startswith("space:degraded:") for reason in reasons):
        return "UNHEALTHY", reasons
    if reasons:
        return "DEGRADED", reasons
    return "OK", reasons
