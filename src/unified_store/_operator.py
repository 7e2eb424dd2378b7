"""Operator abstract base class — the asynchronous backend contract."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping
    from types import TracebackType

    from unified_store._capabilities import CapabilitySet
    from unified_store._models import NativeStat
    from unified_store._path import StoragePath


class Operator(abc.ABC):
    """Abstract base class for all storage backends.

    An operator is built for one call and used inside ``async with``: it is
    opened before the first operation and closed on every exit path.
    Backend-native exceptions must never leak. They are mapped to
    ``unified_store`` errors.

    Paths are :class:`StoragePath` values relative to the operator's root.
    Directory paths end with ``/``.
    """

    @classmethod
    @abc.abstractmethod
    def from_config(cls, options: Mapping[str, str]) -> Operator:
        """Build an operator from string options.

        :raises BackendInitError: If required options are missing or malformed.
        """

    @property
    @abc.abstractmethod
    def scheme(self) -> str:
        """Scheme identifier for this backend (e.g. ``'fs'``, ``'s3'``)."""

    @property
    @abc.abstractmethod
    def capabilities(self) -> CapabilitySet:
        """Declared capabilities of this backend."""

    @abc.abstractmethod
    async def read(self, path: StoragePath) -> bytes:
        """Read the full content of a file.

        :raises NotFoundError: If the file does not exist.
        """

    @abc.abstractmethod
    async def write(self, path: StoragePath, data: bytes) -> None:
        """Create or replace a file, creating parent directories as needed."""

    @abc.abstractmethod
    async def stat(self, path: StoragePath) -> NativeStat:
        """Get native metadata for a file or directory.

        :raises NotFoundError: If nothing exists at ``path``.
        """

    @abc.abstractmethod
    async def delete(self, path: StoragePath) -> None:
        """Delete a file or an empty directory. Missing paths are not an error."""

    @abc.abstractmethod
    async def create_dir(self, path: StoragePath) -> None:
        """Create a directory and its parents. Existing directories are kept."""

    @abc.abstractmethod
    async def copy(self, src: StoragePath, dst: StoragePath) -> None:
        """Copy a file, replacing ``dst`` if it exists.

        :raises NotFoundError: If ``src`` does not exist.
        """

    @abc.abstractmethod
    async def rename(self, src: StoragePath, dst: StoragePath) -> None:
        """Rename a file, replacing ``dst`` if it exists.

        :raises NotFoundError: If ``src`` does not exist.
        """

    @abc.abstractmethod
    def lister(self, path: StoragePath) -> AsyncIterator[StoragePath]:
        """Yield the immediate children of directory ``path``.

        Children are yielded in a stable order and the directory itself is
        not included. A missing directory yields nothing.
        """

    async def open(self) -> None:  # noqa: B027
        """Acquire connections or sessions. Default is a no-op."""

    async def close(self) -> None:  # noqa: B027
        """Release resources. Default is a no-op."""

    async def __aenter__(self) -> Operator:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
