"""
nodemon.model
AUTHOR: carter-vin

Snapshot schema + deterministic serialization primitives.

Design goals:
- Immutable values only (published snapshots are never edited in place)
- Explicit structure (no accidental serialization via __dict__)
- Deterministic ordering: disks follow configured path order
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import json

# Schema constants
SCHEMA_VERSION = "1"


@dataclass(frozen=True)
class Disk:
    """
    One monitored volume's capacity sample
    - mount_path: directory that was probed
    - total_bytes / free_bytes: bytes, never blocks
    """

    mount_path: str
    total_bytes: int
    free_bytes: int

    def __post_init__(self) -> None:
        if self.total_bytes < 0:
            raise ValueError(f"total_bytes must be >= 0: {self.total_bytes}")
        if self.free_bytes < 0:
            raise ValueError(f"free_bytes must be >= 0: {self.free_bytes}")
        if self.free_bytes > self.total_bytes:
            raise ValueError(
                f"free_bytes ({self.free_bytes}) exceeds total_bytes ({self.total_bytes})"
            )

    @property
    def used_bytes(self) -> int:
        return self.total_bytes - self.free_bytes

    @property
    def free_pct(self) -> float | None:
        if self.total_bytes <= 0:
            return None
        return (self.free_bytes / self.total_bytes) * 100.0

    def to_dict(self) -> dict[str, Any]:
        # Explicit key mapping for stability
        return {
            "mount_path": self.mount_path,
            "total_bytes": self.total_bytes,
            "free_bytes": self.free_bytes,
        }


@dataclass(frozen=True)
class LocalState:
    """
    Aggregated node snapshot

    An empty snapshot means "not yet monitored", not "zero capacity".
    """

    disks: tuple[Disk, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.disks

    def to_dict(self) -> dict[str, Any]:
        return {
            "disks": [disk.to_dict() for disk in self.disks],
        }


def validate_state(state: LocalState) -> None:
    """
    Validate snapshot structure

    Raises ValueError on invalid
    """
    if not isinstance(state.disks, tuple):
        raise ValueError("disks must be a tuple")

    for index, disk in enumerate(state.disks):
        if not isinstance(disk, Disk):
            raise ValueError(f"disks[{index}] is not a Disk: {type(disk).__name__}")
        if not disk.mount_path:
            raise ValueError(f"disks[{index}].mount_path is empty")


def state_to_json(state: LocalState, *, assessment: tuple[str, list[str]] | None = None) -> str:
    """
    Serialize a LocalState, optionally with its space assessment

    Rules:
    - sort_keys=True ensures stable key order
    - separators remove whitespace to avoid formatting drift
    - disks list keeps configured order (not sorted)
    """
    # Never serialize invalid objects
    validate_state(state)

    payload: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "state": state.to_dict(),
    }

    if assessment is not None:
        health, reasons = assessment
        payload["assessment"] = {
            "health": health,
            "reasons": sorted(reasons),
        }

    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
