"""Local filesystem backend using aiofiles."""

from __future__ import annotations

import asyncio
import errno
import shutil
import stat as stat_mod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles
import aiofiles.os

from unified_store._capabilities import ALL_CAPABILITIES
from unified_store._config import require_option
from unified_store._errors import (
    BackendInitError,
    InvalidPath,
    IoError,
    NotFoundError,
    PermissionDenied,
    UnifiedStoreError,
)
from unified_store._models import EntryMode, NativeStat
from unified_store._operator import Operator

if TYPE_CHECKING:
    import os
    from collections.abc import AsyncIterator, Iterator, Mapping

    from unified_store._capabilities import CapabilitySet
    from unified_store._path import StoragePath


class FsOperator(Operator):
    """Local filesystem backend.

    :param root: Directory on the local filesystem that all paths are relative to.
        Created on open if missing.
    """

    def __init__(self, root: str) -> None:
        self._root = Path(root).expanduser()

    @classmethod
    def from_config(cls, options: Mapping[str, str]) -> FsOperator:
        return cls(root=require_option(options, "root", scheme="fs"))

    @property
    def scheme(self) -> str:
        return "fs"

    @property
    def capabilities(self) -> CapabilitySet:
        return ALL_CAPABILITIES

    async def open(self) -> None:
        try:
            await aiofiles.os.makedirs(self._root, exist_ok=True)
        except OSError as exc:
            raise BackendInitError(f"Cannot create root {str(self._root)!r}: {exc}", backend=self.scheme) from None
        try:
            self._root = self._root.resolve()
        except (OSError, RuntimeError) as exc:
            raise BackendInitError(f"Cannot resolve root {str(self._root)!r}: {exc}", backend=self.scheme) from None

    # region: path safety
    def _resolve(self, path: StoragePath) -> Path:
        """Resolve a relative path to an absolute path within root.

        :raises InvalidPath: If the resolved path escapes the root.
        :raises IoError: If the path cannot be resolved, e.g. on a symlink loop.
        """
        try:
            resolved = (self._root / path.key).resolve()
        except (OSError, RuntimeError) as exc:
            raise IoError(f"Cannot resolve {path}: {exc}", path=path.key, backend=self.scheme) from None
        try:
            resolved.relative_to(self._root)
        except ValueError:
            raise InvalidPath(f"Path escapes root directory: {path}", path=path.key, backend=self.scheme) from None
        return resolved

    # endregion

    # region: error mapping
    @contextmanager
    def _errors(self, path: StoragePath) -> Iterator[None]:
        """Map OS exceptions to unified_store errors."""
        try:
            yield
        except UnifiedStoreError:
            raise
        except (FileNotFoundError, NotADirectoryError):
            raise NotFoundError(f"Not found: {path}", path=path.key, backend=self.scheme) from None
        except PermissionError:
            raise PermissionDenied(f"Permission denied: {path}", path=path.key, backend=self.scheme) from None
        except IsADirectoryError:
            raise IoError(f"Is a directory: {path}", path=path.key, backend=self.scheme) from None
        except OSError as exc:
            if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                raise IoError(f"{exc.strerror}: {path}", path=path.key, backend=self.scheme) from None
            raise IoError(str(exc), path=path.key, backend=self.scheme) from None

    @staticmethod
    def _to_native(st: os.stat_result) -> NativeStat:
        if stat_mod.S_ISDIR(st.st_mode):
            kind = EntryMode.DIR
        elif stat_mod.S_ISREG(st.st_mode):
            kind = EntryMode.FILE
        else:
            kind = EntryMode.UNKNOWN
        return NativeStat(
            size=st.st_size,
            mode=kind,
            last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    # endregion

    # region: read and write
    async def read(self, path: StoragePath) -> bytes:
        full = self._resolve(path)
        with self._errors(path):
            async with aiofiles.open(full, "rb") as f:
                return await f.read()

    async def write(self, path: StoragePath, data: bytes) -> None:
        full = self._resolve(path)
        with self._errors(path):
            await aiofiles.os.makedirs(full.parent, exist_ok=True)
            async with aiofiles.open(full, "wb") as f:
                await f.write(data)

    # endregion

    # region: metadata
    async def stat(self, path: StoragePath) -> NativeStat:
        full = self._resolve(path)
        with self._errors(path):
            native = self._to_native(await aiofiles.os.stat(full))
        if path.is_dir and native.mode is not EntryMode.DIR:
            raise NotFoundError(f"Not a directory: {path}", path=path.key, backend=self.scheme)
        return native

    # endregion

    # region: mutation
    async def delete(self, path: StoragePath) -> None:
        full = self._resolve(path)
        with self._errors(path):
            try:
                st = await aiofiles.os.stat(full)
            except FileNotFoundError:
                return
            if stat_mod.S_ISDIR(st.st_mode):
                await aiofiles.os.rmdir(full)
            elif path.is_dir:
                raise IoError(f"Not a directory: {path}", path=path.key, backend=self.scheme)
            else:
                await aiofiles.os.remove(full)

    async def create_dir(self, path: StoragePath) -> None:
        full = self._resolve(path)
        with self._errors(path):
            await aiofiles.os.makedirs(full, exist_ok=True)

    async def copy(self, src: StoragePath, dst: StoragePath) -> None:
        src_full = self._resolve(src)
        dst_full = self._resolve(dst)
        with self._errors(src):
            if not await aiofiles.os.path.exists(src_full):
                raise NotFoundError(f"Source not found: {src}", path=src.key, backend=self.scheme)
            await aiofiles.os.makedirs(dst_full.parent, exist_ok=True)
            await asyncio.to_thread(shutil.copyfile, src_full, dst_full)

    async def rename(self, src: StoragePath, dst: StoragePath) -> None:
        src_full = self._resolve(src)
        dst_full = self._resolve(dst)
        with self._errors(src):
            if not await aiofiles.os.path.exists(src_full):
                raise NotFoundError(f"Source not found: {src}", path=src.key, backend=self.scheme)
            await aiofiles.os.makedirs(dst_full.parent, exist_ok=True)
            await aiofiles.os.replace(src_full, dst_full)

    # endregion

    # region: listing
    async def lister(self, path: StoragePath) -> AsyncIterator[StoragePath]:
        full = self._resolve(path)
        with self._errors(path):
            try:
                names = await aiofiles.os.listdir(full)
            except FileNotFoundError:
                return
        for name in sorted(names):
            is_dir = await aiofiles.os.path.isdir(full / name)
            yield path.child(name, is_dir=is_dir)

    # endregion
