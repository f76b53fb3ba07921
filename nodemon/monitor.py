"""
nodemon.monitor
AUTHOR: carter-vin

Local node monitor

Responsibilities:
- Own the ordered set of paths to probe
- Probe all paths concurrently, decide only after every probe finished
- Publish a complete LocalState with a single reference swap
- Serve the last published snapshot without blocking

Failure semantics:
- Any probe failure fails the whole refresh (RefreshFailure)
- A failed or cancelled refresh never touches the published snapshot
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from nodemon.config import MonitorConfig
from nodemon.logging import emit_event
from nodemon.model import Disk, LocalState
from nodemon.probe import ProbeFailure, StatFn, probe_async, statvfs


class MonitorStatus(str, Enum):
    UNPROBED = "unprobed"
    PROBING = "probing"
    PROBED = "probed"


class RefreshFailure(Exception):
    """
    One or more probes failed during a refresh cycle

    failed_paths keeps configured path order
    """

    def __init__(self, failed_paths: Iterable[tuple[str, ProbeFailure]]) -> None:
        self.failed_paths = list(failed_paths)
        detail = ", ".join(f"{path}: {failure.kind.value}" for path, failure in self.failed_paths)
        super().__init__(f"refresh failed for {len(self.failed_paths)} path(s): {detail}")


@dataclass(frozen=True)
class _ProbeOutcome:
    """
    Per-path result; failure kept as data until every probe is done
    """

    path: str
    disk: Optional[Disk] = None
    failure: Optional[ProbeFailure] = None


class LocalMonitor:
    def __init__(self, paths: Sequence[str], *, stat_fn: Optional[StatFn] = None) -> None:
        self._paths: tuple[str, ...] = tuple(paths)
        self._stat_fn: StatFn = stat_fn if stat_fn is not None else statvfs

        # Published snapshot; replaced, never mutated
        self._state = LocalState()
        self._generation = 0
        self._refresh_lock = asyncio.Lock()

        # Injection points for unit tests
        self._paths_for_test: Optional[tuple[str, ...]] = None
        self._stat_fn_for_test: Optional[StatFn] = None

    @classmethod
    def from_config(cls, config: MonitorConfig, *, stat_fn: Optional[StatFn] = None) -> "LocalMonitor":
        return cls(config.paths(), stat_fn=stat_fn)

    @property
    def paths(self) -> tuple[str, ...]:
        if self._paths_for_test is not None:
            return self._paths_for_test
        return self._paths

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def status(self) -> MonitorStatus:
        if self._refresh_lock.locked():
            return MonitorStatus.PROBING
        if self._generation > 0:
            return MonitorStatus.PROBED
        return MonitorStatus.UNPROBED

    def current(self) -> LocalState:
        """
        Last published snapshot (empty until the first successful refresh)
        """
        return self._state

    def set_paths_for_test(self, paths: Sequence[str]) -> None:
        self._paths_for_test = tuple(paths)

    def set_statvfs_for_test(self, stat_fn: StatFn) -> None:
        self._stat_fn_for_test = stat_fn

    def _effective_stat_fn(self) -> StatFn:
        if self._stat_fn_for_test is not None:
            return self._stat_fn_for_test
        return self._stat_fn

    async def _probe_one(self, path: str, stat_fn: StatFn) -> _ProbeOutcome:
        try:
            disk = await probe_async(path, stat_fn)
        except ProbeFailure as e:
            return _ProbeOutcome(path=path, failure=e)
        return _ProbeOutcome(path=path, disk=disk)

    async def refresh(self) -> None:
        """
        Probe every configured path and publish a new snapshot

        Concurrent calls are serialized: the last one started publishes last.
        Raises RefreshFailure when any probe failed.
        """
        async with self._refresh_lock:
            paths = self.paths
            stat_fn = self._effective_stat_fn()

            outcomes = await asyncio.gather(*(self._probe_one(path, stat_fn) for path in paths))

            failed = [(o.path, o.failure) for o in outcomes if o.failure is not None]
            if failed:
                for path, failure in failed:
                    emit_event(
                        "probe_failed",
                        severity="warn",
                        path=path,
                        error_kind=failure.kind.value,
                        message=failure.message,
                    )
                emit_event(
                    "refresh_failed",
                    severity="error",
                    failed_count=len(failed),
                    path_count=len(paths),
                    generation=self._generation,
                )
                raise RefreshFailure(failed)

            # gather() returns in argument order, so disks follow configured order
            new_state = LocalState(disks=tuple(o.disk for o in outcomes))

            self._state = new_state
            self._generation += 1

            emit_event(
                "snapshot_published",
                severity="debug",
                generation=self._generation,
                disk_count=len(new_state.disks),
            )
