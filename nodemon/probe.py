"""
nodemon.probe
AUTHOR: carter-vin

Disk prober
- One volume-statistics query per call, normalized to bytes
- The system call is a plain function argument so tests can pass a stub
- Read-only; never creates or validates directories
- No retries here (the caller owns retry policy)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import os
from typing import Callable

from nodemon.model import Disk


@dataclass(frozen=True)
class VolumeStats:
    """
    Raw result of a volume-statistics query

    Both counts share block_size, so free/total ratio stays exact
    """

    block_size: int
    total_blocks: int
    free_blocks: int


StatFn = Callable[[str], VolumeStats]


class ProbeFailureKind(str, Enum):
    NOT_FOUND = "not-found"
    PERMISSION_DENIED = "permission-denied"
    IO_ERROR = "io-error"


class ProbeFailure(Exception):
    """
    Volume-statistics query failed for a single path
    """

    def __init__(self, path: str, kind: ProbeFailureKind, message: str = "") -> None:
        self.path = path
        self.kind = kind
        self.message = message
        super().__init__(f"{path}: {kind.value}" + (f" ({message})" if message else ""))


def statvfs(path: str) -> VolumeStats:
    """
    Production binding: os.statvfs

    f_frsize is the unit for f_blocks / f_bfree
    """
    st = os.statvfs(path)
    return VolumeStats(
        block_size=st.f_frsize,
        total_blocks=st.f_blocks,
        free_blocks=st.f_bfree,
    )


def classify_os_error(e: OSError) -> ProbeFailureKind:
    if isinstance(e, (FileNotFoundError, NotADirectoryError)):
        return ProbeFailureKind.NOT_FOUND
    if isinstance(e, PermissionError):
        return ProbeFailureKind.PERMISSION_DENIED
    return ProbeFailureKind.IO_ERROR


def _to_disk(path: str, stats: VolumeStats) -> Disk:
    if stats.block_size <= 0:
        raise ProbeFailure(path, ProbeFailureKind.IO_ERROR, f"invalid block size {stats.block_size}")

    try:
        return Disk(
            mount_path=path,
            total_bytes=stats.total_blocks * stats.block_size,
            free_bytes=stats.free_blocks * stats.block_size,
        )
    except ValueError as e:
        raise ProbeFailure(path, ProbeFailureKind.IO_ERROR, str(e)) from e


def probe(path: str, stat_fn: StatFn = statvfs) -> Disk:
    """
    Probe one path and return its capacity sample

    Raises ProbeFailure (not-found, permission-denied, io-error)
    """
    try:
        stats = stat_fn(path)
    except ProbeFailure:
        raise
    except OSError as e:
        raise ProbeFailure(path, classify_os_error(e), e.strerror or str(e)) from e

    return _to_disk(path, stats)


async def probe_async(path: str, stat_fn: StatFn = statvfs) -> Disk:
    """
    Same as probe(), with the blocking query moved to a worker thread
    """
    return await asyncio.to_thread(probe, path, stat_fn)
