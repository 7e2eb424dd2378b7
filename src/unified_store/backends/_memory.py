"""In-memory backend — a process-wide volume shared by every memory operator."""

from __future__ import annotations

import dataclasses
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from unified_store._capabilities import ALL_CAPABILITIES
from unified_store._errors import IoError, NotFoundError
from unified_store._models import EntryMode, NativeStat
from unified_store._path import StoragePath, join_root
from unified_store._operator import Operator

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from unified_store._capabilities import CapabilitySet


@dataclasses.dataclass(frozen=True)
class _Blob:
    data: bytes
    modified: datetime


class _Volume:
    """Thread-safe key space: files by key, directories by key with trailing ``/``."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.files: dict[str, _Blob] = {}
        self.dirs: set[str] = {""}

    def clear(self) -> None:
        with self.lock:
            self.files.clear()
            self.dirs.clear()
            self.dirs.add("")

    def add_parents(self, key: str) -> None:
        """Register every ancestor directory of ``key``. Caller holds the lock."""
        parts = key.rstrip("/").split("/")[:-1]
        current = ""
        for part in parts:
            current = f"{current}{part}/"
            if current.rstrip("/") in self.files:
                raise IoError(f"Not a directory: {current}", path=current)
            self.dirs.add(current)


_VOLUME = _Volume()


def reset_volume() -> None:
    """Drop everything stored by memory operators in this process."""
    _VOLUME.clear()


class MemoryOperator(Operator):
    """Backend keeping data in process memory.

    Data outlives individual operators so that consecutive calls see each
    other's writes; it is lost when the process exits.

    :param root: Key prefix isolating this operator's view of the volume.
    """

    def __init__(self, root: str = "") -> None:
        self._root = root.strip("/")

    @classmethod
    def from_config(cls, options: Mapping[str, str]) -> MemoryOperator:
        return cls(root=options.get("root", ""))

    @property
    def scheme(self) -> str:
        return "memory"

    @property
    def capabilities(self) -> CapabilitySet:
        return ALL_CAPABILITIES

    def _key(self, path: StoragePath) -> str:
        return join_root(self._root, path)

    def _rel(self, key: str) -> StoragePath:
        prefix = f"{self._root}/" if self._root else ""
        return StoragePath(key[len(prefix) :])

    def _not_found(self, path: StoragePath) -> NotFoundError:
        return NotFoundError(f"Not found: {path}", path=path.key, backend=self.scheme)

    # region: read and write
    async def read(self, path: StoragePath) -> bytes:
        key = self._key(path)
        with _VOLUME.lock:
            blob = _VOLUME.files.get(key)
            if blob is None:
                if f"{key}/" in _VOLUME.dirs:
                    raise IoError(f"Is a directory: {path}", path=path.key, backend=self.scheme)
                raise self._not_found(path)
            return blob.data

    async def write(self, path: StoragePath, data: bytes) -> None:
        key = self._key(path)
        with _VOLUME.lock:
            if f"{key}/" in _VOLUME.dirs:
                raise IoError(f"Is a directory: {path}", path=path.key, backend=self.scheme)
            _VOLUME.add_parents(key)
            _VOLUME.files[key] = _Blob(bytes(data), datetime.now(tz=timezone.utc))

    # endregion

    # region: metadata
    async def stat(self, path: StoragePath) -> NativeStat:
        if path.is_root:
            return NativeStat(size=0, mode=EntryMode.DIR)
        key = self._key(path)
        with _VOLUME.lock:
            if not path.is_dir:
                blob = _VOLUME.files.get(key)
                if blob is not None:
                    return NativeStat(size=len(blob.data), mode=EntryMode.FILE, last_modified=blob.modified)
            dir_key = key if key.endswith("/") or key == "" else f"{key}/"
            if dir_key in _VOLUME.dirs:
                return NativeStat(size=0, mode=EntryMode.DIR)
        raise self._not_found(path)

    # endregion

    # region: mutation
    async def delete(self, path: StoragePath) -> None:
        key = self._key(path)
        with _VOLUME.lock:
            if not path.is_dir and _VOLUME.files.pop(key, None) is not None:
                return
            dir_key = key if key.endswith("/") else f"{key}/"
            if dir_key not in _VOLUME.dirs:
                return
            if any(k.startswith(dir_key) for k in _VOLUME.files) or any(
                d != dir_key and d.startswith(dir_key) for d in _VOLUME.dirs
            ):
                raise IoError(f"Directory not empty: {path}", path=path.key, backend=self.scheme)
            _VOLUME.dirs.discard(dir_key)

    async def create_dir(self, path: StoragePath) -> None:
        key = self._key(path.as_dir())
        with _VOLUME.lock:
            if key.rstrip("/") in _VOLUME.files:
                raise IoError(f"Not a directory: {path}", path=path.key, backend=self.scheme)
            _VOLUME.add_parents(key)
            _VOLUME.dirs.add(key)

    async def copy(self, src: StoragePath, dst: StoragePath) -> None:
        src_key, dst_key = self._key(src), self._key(dst)
        with _VOLUME.lock:
            blob = _VOLUME.files.get(src_key)
            if blob is None:
                raise NotFoundError(f"Source not found: {src}", path=src.key, backend=self.scheme)
            if f"{dst_key}/" in _VOLUME.dirs:
                raise IoError(f"Is a directory: {dst}", path=dst.key, backend=self.scheme)
            _VOLUME.add_parents(dst_key)
            _VOLUME.files[dst_key] = _Blob(blob.data, datetime.now(tz=timezone.utc))

    async def rename(self, src: StoragePath, dst: StoragePath) -> None:
        src_key, dst_key = self._key(src), self._key(dst)
        with _VOLUME.lock:
            blob = _VOLUME.files.get(src_key)
            if blob is None:
                raise NotFoundError(f"Source not found: {src}", path=src.key, backend=self.scheme)
            if f"{dst_key}/" in _VOLUME.dirs:
                raise IoError(f"Is a directory: {dst}", path=dst.key, backend=self.scheme)
            _VOLUME.add_parents(dst_key)
            _VOLUME.files[dst_key] = _VOLUME.files.pop(src_key)

    # endregion

    # region: listing
    async def lister(self, path: StoragePath) -> AsyncIterator[StoragePath]:
        dir_key = self._key(path.as_dir())
        with _VOLUME.lock:
            if dir_key not in _VOLUME.dirs:
                return
            children = [k for k in _VOLUME.files if k.startswith(dir_key) and "/" not in k[len(dir_key) :]]
            children += [
                d for d in _VOLUME.dirs if d != dir_key and d.startswith(dir_key) and "/" not in d[len(dir_key) : -1]
            ]
        for key in sorted(children):
            yield self._rel(key)

    # endregion
