"""Shared test fixtures and marker registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from unified_store._capabilities import ALL_CAPABILITIES
from unified_store._errors import NotFoundError
from unified_store._models import EntryMode, NativeStat
from unified_store._operator import Operator
from unified_store._path import StoragePath
from unified_store.backends._memory import reset_volume

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator, Mapping

    from unified_store._capabilities import CapabilitySet


def pytest_configure(config: object) -> None:
    """Register custom markers."""
    if isinstance(config, pytest.Config):
        config.addinivalue_line("markers", "integration: requires external services")


@pytest.fixture(autouse=True)
def _clean_memory_volume() -> Iterator[None]:
    yield
    reset_volume()


class RecordingOperator(Operator):
    """Operator double that records calls and serves a fixed set of files."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files = dict(files or {})
        self.calls: list[str] = []
        self.opened = False
        self.closed = False
        self.fail_stat: dict[str, Exception] = {}
        self.fail_list: Exception | None = None

    @classmethod
    def from_config(cls, options: Mapping[str, str]) -> RecordingOperator:
        return cls()

    @property
    def scheme(self) -> str:
        return "recording"

    @property
    def capabilities(self) -> CapabilitySet:
        return ALL_CAPABILITIES

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    async def read(self, path: StoragePath) -> bytes:
        self.calls.append(f"read:{path}")
        if path.key not in self.files:
            raise NotFoundError(f"Not found: {path}", path=path.key, backend=self.scheme)
        return self.files[path.key]

    async def write(self, path: StoragePath, data: bytes) -> None:
        self.calls.append(f"write:{path}")
        self.files[path.key] = data

    async def stat(self, path: StoragePath) -> NativeStat:
        self.calls.append(f"stat:{path}")
        if path.key in self.fail_stat:
            raise self.fail_stat[path.key]
        if path.key in self.files:
            return NativeStat(size=len(self.files[path.key]), mode=EntryMode.FILE)
        raise NotFoundError(f"Not found: {path}", path=path.key, backend=self.scheme)

    async def delete(self, path: StoragePath) -> None:
        self.calls.append(f"delete:{path}")
        self.files.pop(path.key, None)

    async def create_dir(self, path: StoragePath) -> None:
        self.calls.append(f"create_dir:{path}")

    async def copy(self, src: StoragePath, dst: StoragePath) -> None:
        self.calls.append(f"copy:{src}:{dst}")
        self.files[dst.key] = self.files[src.key]

    async def rename(self, src: StoragePath, dst: StoragePath) -> None:
        self.calls.append(f"rename:{src}:{dst}")
        self.files[dst.key] = self.files.pop(src.key)

    async def lister(self, path: StoragePath) -> AsyncIterator[StoragePath]:
        self.calls.append(f"list:{path}")
        for key in self.files:
            if self.fail_list is not None:
                raise self.fail_list
            yield StoragePath(key)


@pytest.fixture()
def recording_operator() -> RecordingOperator:
    return RecordingOperator()
