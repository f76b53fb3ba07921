"""
Shared test helpers: deterministic volume-statistics stubs keyed by path
"""

from typing import Callable, Mapping, Union

import pytest

from nodemon.probe import VolumeStats

StubEntry = Union[VolumeStats, BaseException]


def stat_stub(table: Mapping[str, StubEntry]) -> Callable[[str], VolumeStats]:
    """
    Build a stat function from {path: VolumeStats | exception}

    Unknown paths behave like a missing directory
    """

    def _stat(path: str) -> VolumeStats:
        entry = table.get(path)
        if entry is None:
            raise FileNotFoundError(2, "No such file or directory", path)
        if isinstance(entry, BaseException):
            raise entry
        return entry

    return _stat


@pytest.fixture
def make_stat_fn():
    return stat_stub
