"""
nodemon.main
------------
AUTHOR: carter-vin

PURPOSE:
- Operator entrypoint for the local node monitor
- Acts as the external trigger: one refresh (oneshot) or a fixed-interval loop (run)

Key contract:
- `node-monitor --help` shows a Commands section.
- `node-monitor oneshot` exits non-zero when any configured path cannot be probed.
"""

from __future__ import annotations

import asyncio
import platform
import sys
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

import typer

from nodemon.config import MonitorConfig, load_config_from_env
from nodemon.evaluate import evaluate_space
from nodemon.logging import emit_event
from nodemon.model import state_to_json
from nodemon.monitor import LocalMonitor, RefreshFailure

# Explicit multi-command CLI
app = typer.Typer(
    add_completion=False,
    help="node-monitor: local node disk capacity monitor",
)

MONITOR_VERSION = "0.1.0"

# -----------------------------
# DATA CLASSES
# -----------------------------
@dataclass(frozen=True)
class EnvironmentInfo:
    """
    Snapshot of the runtime environment
    """

    python_version: str
    os: str
    machine: str
    utc_now: str


def collect_environment_info() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=sys.version.split()[0],
        os=f"{platform.system()} {platform.release()}",
        machine=platform.machine(),
        utc_now=datetime.now(timezone.utc).isoformat(),
    )


def _resolve_config(
    data_dir: Optional[str],
    cache_dir: Optional[str],
    interval: Optional[int] = None,
) -> MonitorConfig:
    """
    Env config first, then CLI options on top
    """
    try:
        config = load_config_from_env()
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    if data_dir:
        config = replace(config, data_directory=data_dir)
    if cache_dir:
        config = replace(config, cache_directory=cache_dir)
    if interval is not None:
        config = replace(config, refresh_interval_s=interval)
    return config


def _snapshot_line(monitor: LocalMonitor, config: MonitorConfig) -> str:
    state = monitor.current()
    return state_to_json(state, assessment=evaluate_space(state, config.thresholds))


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Root command behavior: print a short hint when no subcommand is given
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: node-monitor --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print monitor version & runtime env
    """
    env = collect_environment_info()

    typer.echo(f"node-monitor v{MONITOR_VERSION}")
    typer.echo(f"python={env.python_version}")
    typer.echo(f"os={env.os}")
    typer.echo(f"machine={env.machine}")
    typer.echo(f"utc_now={env.utc_now}")


@app.command("oneshot")
def oneshot(
    data_dir: Optional[str] = typer.Option(
        None,
        "--data-dir",
        help="Data directory to probe (default: $NODE_MONITOR_DATA_DIR).",
    ),
    cache_dir: Optional[str] = typer.Option(
        None,
        "--cache-dir",
        help="Optional cache directory to probe (default: $NODE_MONITOR_CACHE_DIR).",
    ),
    no_stdout: bool = typer.Option(
        False,
        "--no-stdout",
        help="Disable printing the snapshot JSON to stdout.",
    ),
) -> None:
    """
    Refresh once, print the snapshot and exit

    Failure semantics:
    - any probe failure -> exit code 1, nothing printed
    """
    config = _resolve_config(data_dir, cache_dir)

    emit_event(
        "monitor_start",
        mode="oneshot",
        paths=config.paths(),
    )

    try:
        monitor = LocalMonitor.from_config(config)

        try:
            asyncio.run(monitor.refresh())
        except RefreshFailure:
            # Already logged per path by the monitor
            raise typer.Exit(code=1)

        if not no_stdout:
            typer.echo(_snapshot_line(monitor, config))

    finally:
        emit_event(
            "monitor_shutdown",
            mode="oneshot",
        )


async def _run_loop(
    monitor: LocalMonitor,
    config: MonitorConfig,
    *,
    emit_stdout: bool,
    max_ticks: int,
) -> None:
    ticks = 0
    while max_ticks <= 0 or ticks < max_ticks:
        start = time.monotonic()

        refresh_ok = True
        try:
            await monitor.refresh()
        except RefreshFailure:
            # Keep serving the last good snapshot; retry next tick
            refresh_ok = False

        state = monitor.current()
        health, _ = evaluate_space(state, config.thresholds)

        if emit_stdout and refresh_ok:
            typer.echo(_snapshot_line(monitor, config))

        elapsed = time.monotonic() - start
        sleep_s = max(0.0, config.refresh_interval_s - elapsed)
        ticks += 1

        emit_event(
            "monitor_tick",
            mode="run",
            interval_s=config.refresh_interval_s,
            tick_elapsed_ms=int(elapsed * 1000),
            sleep_ms=int(sleep_s * 1000),
            overrun=elapsed > config.refresh_interval_s,
            refresh_ok=refresh_ok,
            generation=monitor.generation,
            health=health,
        )

        if max_ticks <= 0 or ticks < max_ticks:
            await asyncio.sleep(sleep_s)


@app.command("run")
def run(
    interval: Optional[int] = typer.Option(
        None,
        help="Refresh at a fixed interval (seconds, default: $NODE_MONITOR_INTERVAL_S or 10).",
        min=1,
    ),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", help="Data directory to probe."),
    cache_dir: Optional[str] = typer.Option(None, "--cache-dir", help="Optional cache directory to probe."),
    max_ticks: int = typer.Option(
        0,
        "--max-ticks",
        help="Stop after N refreshes (0 runs until interrupted).",
        min=0,
    ),
    no_stdout: bool = typer.Option(
        False,
        "--no-stdout",
        help="Disable printing snapshot JSON to stdout.",
    ),
) -> None:
    """
    Run continuous monitor loop.
    """
    config = _resolve_config(data_dir, cache_dir, interval)

    emit_event(
        "monitor_start",
        mode="run",
        interval_s=config.refresh_interval_s,
        paths=config.paths(),
    )

    monitor = LocalMonitor.from_config(config)

    try:
        asyncio.run(_run_loop(monitor, config, emit_stdout=not no_stdout, max_ticks=max_ticks))

    except KeyboardInterrupt:
        # Graceful shutdown on Ctrl+C
        pass

    finally:
        emit_event(
            "monitor_shutdown",
            mode="run",
            generation=monitor.generation,
        )


if __name__ == "__main__":
    app()
