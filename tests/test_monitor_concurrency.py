"""
Contract tests for snapshot publication under concurrency

Stubs run in worker threads (probe_async), so gates are threading.Events.
"""

import asyncio
import threading
import time

import pytest

from nodemon.model import Disk
from nodemon.monitor import LocalMonitor, MonitorStatus
from nodemon.probe import VolumeStats

GATE_TIMEOUT_S = 5


@pytest.mark.asyncio
async def test_disk_order_ignores_completion_order() -> None:
    """
    First path finishes last; disks still follow configured order
    """
    completed: list[str] = []

    def stat_fn(path: str) -> VolumeStats:
        if path == "/slow":
            time.sleep(0.2)
        completed.append(path)
        return VolumeStats(block_size=1024, total_blocks=10, free_blocks=5)

    monitor = LocalMonitor(["/slow", "/fast"], stat_fn=stat_fn)

    await monitor.refresh()

    assert completed == ["/fast", "/slow"]
    assert [disk.mount_path for disk in monitor.current().disks] == ["/slow", "/fast"]


@pytest.mark.asyncio
async def test_probes_run_concurrently() -> None:
    """
    Two slow paths overlap instead of serializing
    """
    def stat_fn(path: str) -> VolumeStats:
        time.sleep(0.3)
        return VolumeStats(block_size=1024, total_blocks=10, free_blocks=5)

    monitor = LocalMonitor(["/a", "/b", "/c"], stat_fn=stat_fn)

    start = time.monotonic()
    await monitor.refresh()
    elapsed = time.monotonic() - start

    assert elapsed < 0.8
    assert len(monitor.current().disks) == 3


@pytest.mark.asyncio
async def test_readers_see_old_snapshot_until_publish() -> None:
    """
    While a refresh is in flight, current() returns the complete prior snapshot
    """
    table = {
        "/data": VolumeStats(block_size=4096, total_blocks=100, free_blocks=50),
        "/slow": VolumeStats(block_size=4096, total_blocks=100, free_blocks=60),
    }
    gate = threading.Event()
    entered = threading.Event()

    def stat_fn(path: str) -> VolumeStats:
        if path == "/slow" and not gate.is_set():
            entered.set()
            assert gate.wait(GATE_TIMEOUT_S)
        return table[path]

    monitor = LocalMonitor(["/data", "/slow"], stat_fn=stat_fn)
    gate.set()
    await monitor.refresh()
    old = monitor.current()

    table["/data"] = VolumeStats(block_size=4096, total_blocks=100, free_blocks=10)
    table["/slow"] = VolumeStats(block_size=4096, total_blocks=100, free_blocks=20)
    gate.clear()

    task = asyncio.create_task(monitor.refresh())
    assert await asyncio.to_thread(entered.wait, GATE_TIMEOUT_S)

    # /data has been probed already; nothing of it may leak out yet
    for _ in range(10):
        assert monitor.current() is old
        assert monitor.status is MonitorStatus.PROBING
        await asyncio.sleep(0)

    gate.set()
    await task

    new = monitor.current()
    assert new.disks == (
        Disk("/data", 409600, 40960),
        Disk("/slow", 409600, 81920),
    )
    assert monitor.status is MonitorStatus.PROBED


@pytest.mark.asyncio
async def test_concurrent_refreshes_are_serialized_last_wins() -> None:
    """
    A second refresh waits for the first; the later one publishes last
    """
    calls: list[str] = []
    gate = threading.Event()
    entered = threading.Event()

    def stat_fn(path: str) -> VolumeStats:
        calls.append(path)
        call_number = len(calls)
        if call_number == 1:
            entered.set()
            assert gate.wait(GATE_TIMEOUT_S)
        return VolumeStats(block_size=4096, total_blocks=100, free_blocks=call_number)

    monitor = LocalMonitor(["/data"], stat_fn=stat_fn)

    first = asyncio.create_task(monitor.refresh())
    assert await asyncio.to_thread(entered.wait, GATE_TIMEOUT_S)

    second = asyncio.create_task(monitor.refresh())
    await asyncio.sleep(0.05)
    assert len(calls) == 1

    gate.set()
    await asyncio.gather(first, second)

    assert len(calls) == 2
    assert monitor.current().disks == (Disk("/data", 409600, 2 * 4096),)
    assert monitor.generation == 2


@pytest.mark.asyncio
async def test_cancelled_refresh_does_not_publish() -> None:
    gate = threading.Event()
    entered = threading.Event()

    def stat_fn(path: str) -> VolumeStats:
        entered.set()
        gate.wait(GATE_TIMEOUT_S)
        return VolumeStats(block_size=4096, total_blocks=100, free_blocks=1)

    monitor = LocalMonitor(["/data"], stat_fn=stat_fn)

    task = asyncio.create_task(monitor.refresh())
    assert await asyncio.to_thread(entered.wait, GATE_TIMEOUT_S)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    # Release the worker thread
    gate.set()
    await asyncio.sleep(0.05)

    assert monitor.current().is_empty
    assert monitor.generation == 0
    assert monitor.status is MonitorStatus.UNPROBED
