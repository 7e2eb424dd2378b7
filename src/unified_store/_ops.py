"""Operation dispatcher — the synchronous public entry points.

Every function resolves its configuration, builds a fresh operator, runs
exactly one coroutine through :func:`run_sync`, and returns a plain value.
Failures are raised as :class:`UnifiedStoreError` subclasses whose message
names the operation, the path(s) involved and the cause.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from unified_store._bridge import run_sync
from unified_store._config import BackendDescriptor
from unified_store._errors import EncodingError, InvalidArgument, InvalidPath, NotFoundError, UnifiedStoreError
from unified_store._listing import collect_entries
from unified_store._models import normalize_metadata
from unified_store._path import StoragePath
from unified_store._registry import build_operator

if TYPE_CHECKING:
    from collections.abc import Iterator

    from unified_store._capabilities import CapabilitySet
    from unified_store._models import Entry, Metadata
    from unified_store._operator import Operator
    from unified_store._types import ConfigSource

log = logging.getLogger(__name__)


# region: helpers


@contextmanager
def _reported(context: str) -> Iterator[None]:
    """Prefix any unified_store error raised in the block with ``context``."""
    try:
        yield
    except UnifiedStoreError as exc:
        raise exc.with_context(context) from exc


def _require_str(name: str, value: object) -> str:
    if not isinstance(value, str):
        raise InvalidArgument(f"{name} must be a string, got {type(value).__name__}")
    return value


def _file_path(raw: object) -> StoragePath:
    path = StoragePath(_require_str("path", raw))
    if path.is_dir:
        raise InvalidPath("Path must point to a file, not a directory", path=path.key)
    return path


def _operator(backend: object, config: ConfigSource) -> Operator:
    scheme = _require_str("backend", backend)
    with _reported("Failed to parse config"):
        descriptor = BackendDescriptor.resolve(scheme, config)
    with _reported("Failed to create operator"):
        return build_operator(descriptor.scheme, descriptor.options)


# endregion

# region: coroutines


async def _do_read(op: Operator, path: StoragePath) -> bytes:
    async with op:
        return await op.read(path)


async def _do_write(op: Operator, path: StoragePath, data: bytes) -> None:
    async with op:
        await op.write(path, data)


async def _do_stat(op: Operator, path: StoragePath) -> Metadata:
    async with op:
        return normalize_metadata(await op.stat(path))


async def _do_exists(op: Operator, path: StoragePath) -> bool:
    async with op:
        try:
            await op.stat(path)
        except NotFoundError:
            return False
        return True


async def _do_delete(op: Operator, path: StoragePath) -> None:
    async with op:
        await op.delete(path)


async def _do_create_dir(op: Operator, path: StoragePath) -> None:
    async with op:
        await op.create_dir(path)


async def _do_copy(op: Operator, src: StoragePath, dst: StoragePath) -> None:
    async with op:
        await op.copy(src, dst)


async def _do_rename(op: Operator, src: StoragePath, dst: StoragePath) -> None:
    async with op:
        await op.rename(src, dst)


async def _do_list(op: Operator, path: StoragePath) -> list[Entry]:
    async with op:
        return await collect_entries(op, path)


# endregion

# region: public operations


def read(backend: str, path: str, config: ConfigSource) -> str:
    """Read a file and decode it as UTF-8 text.

    :raises EncodingError: If the content is not valid UTF-8.
    :raises NotFoundError: If the file does not exist.
    """
    with _reported(f"Failed to read file '{path}'"):
        target = _file_path(path)
        op = _operator(backend, config)
        log.debug("read %s from %s", target, op.scheme)
        data = run_sync(_do_read, op, target)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EncodingError(f"Failed to convert data to UTF-8: {exc}", path=target.key, backend=op.scheme) from None


def write(backend: str, path: str, content: str, config: ConfigSource) -> bool:
    """Create or replace a file with UTF-8 encoded ``content``."""
    with _reported(f"Failed to write to '{path}'"):
        target = _file_path(path)
        data = _require_str("content", content).encode("utf-8")
        op = _operator(backend, config)
        log.debug("write %d bytes to %s on %s", len(data), target, op.scheme)
        run_sync(_do_write, op, target, data)
    return True


def exists(backend: str, path: str, config: ConfigSource) -> bool:
    """Check whether a file or directory exists. ``NotFoundError`` maps to ``False``."""
    with _reported(f"Failed to check existence of '{path}'"):
        target = StoragePath(_require_str("path", path))
        op = _operator(backend, config)
        log.debug("exists %s on %s", target, op.scheme)
        return run_sync(_do_exists, op, target)


def delete(backend: str, path: str, config: ConfigSource) -> bool:
    """Delete a file or empty directory. Deleting a missing path succeeds."""
    with _reported(f"Failed to delete '{path}'"):
        target = StoragePath(_require_str("path", path))
        if target.is_root:
            raise InvalidPath("Cannot delete the backend root", path=target.key)
        op = _operator(backend, config)
        log.debug("delete %s on %s", target, op.scheme)
        run_sync(_do_delete, op, target)
    return True


def stat(backend: str, path: str, config: ConfigSource) -> Metadata:
    """Return normalized metadata for a file or directory.

    :raises NotFoundError: If nothing exists at ``path``.
    """
    with _reported(f"Failed to get stat for '{path}'"):
        target = StoragePath(_require_str("path", path))
        op = _operator(backend, config)
        log.debug("stat %s on %s", target, op.scheme)
        return run_sync(_do_stat, op, target)


def create_dir(backend: str, path: str, config: ConfigSource) -> bool:
    """Create a directory (and its parents). ``path`` is always treated as a directory."""
    with _reported(f"Failed to create directory '{path}'"):
        target = StoragePath(_require_str("path", path)).as_dir()
        op = _operator(backend, config)
        log.debug("create_dir %s on %s", target, op.scheme)
        run_sync(_do_create_dir, op, target)
    return True


def copy(backend: str, source: str, target: str, config: ConfigSource) -> bool:
    """Copy a file, replacing ``target`` if it exists."""
    with _reported(f"Failed to copy from '{source}' to '{target}'"):
        src = _file_path(source)
        dst = _file_path(target)
        op = _operator(backend, config)
        log.debug("copy %s -> %s on %s", src, dst, op.scheme)
        run_sync(_do_copy, op, src, dst)
    return True


def rename(backend: str, source: str, target: str, config: ConfigSource) -> bool:
    """Rename a file, replacing ``target`` if it exists."""
    with _reported(f"Failed to rename from '{source}' to '{target}'"):
        src = _file_path(source)
        dst = _file_path(target)
        op = _operator(backend, config)
        log.debug("rename %s -> %s on %s", src, dst, op.scheme)
        run_sync(_do_rename, op, src, dst)
    return True


def list_entries(backend: str, path: str, config: ConfigSource) -> list[Entry]:
    """List the immediate children of a directory with their metadata.

    The whole listing is buffered; the first failure aborts the call.
    """
    with _reported(f"Failed to list contents of '{path}'"):
        target = StoragePath(_require_str("path", path)).as_dir()
        op = _operator(backend, config)
        log.debug("list %s on %s", target, op.scheme)
        return run_sync(_do_list, op, target)


def capability(backend: str, config: ConfigSource) -> CapabilitySet:
    """Return the capabilities declared by a backend. Performs no I/O."""
    op = _operator(backend, config)
    return op.capabilities


# endregion
