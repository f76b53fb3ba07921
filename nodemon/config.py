"""
nodemon.config
AUTHOR: carter-vin

Monitor configuration
- data directory is always probed, cache directory only when set
- env vars override defaults; CLI options override env vars
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Mapping, Optional

from nodemon.evaluate import SpaceThresholds

DEFAULT_DATA_DIR = "/var/lib/nodemon/data"
DEFAULT_INTERVAL_S = 10

DATA_DIR_ENV = "NODE_MONITOR_DATA_DIR"
CACHE_DIR_ENV = "NODE_MONITOR_CACHE_DIR"
INTERVAL_ENV = "NODE_MONITOR_INTERVAL_S"


@dataclass(frozen=True)
class MonitorConfig:
    data_directory: str = DEFAULT_DATA_DIR
    cache_directory: Optional[str] = None
    refresh_interval_s: int = DEFAULT_INTERVAL_S
    thresholds: SpaceThresholds = field(default_factory=SpaceThresholds)

    def paths(self) -> list[str]:
        """
        Ordered paths to probe: data dir first, then cache dir
        """
        paths = [self.data_directory]
        if self.cache_directory:
            paths.append(self.cache_directory)
        return paths


def _parse_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer: {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be >= 1: {value}")
    return value


def load_config_from_env(environ: Mapping[str, str] | None = None) -> MonitorConfig:
    """
    Build config from NODE_MONITOR_* env vars

    Missing or empty vars keep defaults; malformed values raise ValueError
    """
    if environ is None:
        environ = os.environ

    data_dir = environ.get(DATA_DIR_ENV) or DEFAULT_DATA_DIR
    cache_dir = environ.get(CACHE_DIR_ENV) or None

    interval = DEFAULT_INTERVAL_S
    raw_interval = environ.get(INTERVAL_ENV)
    if raw_interval:
        interval = _parse_int(INTERVAL_ENV, raw_interval)

    return MonitorConfig(
        data_directory=data_dir,
        cache_directory=cache_dir,
        refresh_interval_s=interval,
    )
