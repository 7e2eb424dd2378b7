"""SFTP backend using paramiko, driven from worker threads."""

from __future__ import annotations

import asyncio
import contextlib
import errno
import logging
import os
import shutil
import stat
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from unified_store._capabilities import ALL_CAPABILITIES
from unified_store._config import require_option
from unified_store._errors import (
    BackendInitError,
    IoError,
    NotFoundError,
    PermissionDenied,
    UnifiedStoreError,
)
from unified_store._models import EntryMode, NativeStat
from unified_store._operator import Operator

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator, Mapping

    from unified_store._capabilities import CapabilitySet
    from unified_store._path import StoragePath

log = logging.getLogger(__name__)

# RFC 4253 compliant chunk size for SFTP data transfer
_CHUNK_SIZE = 32768

_HOST_KEYS_ENV = "SFTP_KNOWN_HOST_KEYS"


class KnownHostsStrategy(Enum):
    """Controls how unknown remote host keys are handled.

    :cvar STRICT: Reject unknown hosts (default).
    :cvar ADD: Accept unknown hosts and save their keys to ``~/.ssh/known_hosts``
        (trust on first use). Nothing is saved when keys come from
        ``SFTP_KNOWN_HOST_KEYS``.
    :cvar ACCEPT: Accept any key (dev/testing ONLY).
    """

    STRICT = "strict"
    ADD = "add"
    ACCEPT = "accept"


def _parse_endpoint(endpoint: str) -> tuple[str, int]:
    """Split ``[ssh://]host[:port]`` into host and port."""
    value = endpoint.strip()
    if value.startswith("ssh://"):
        value = value[len("ssh://") :]
    value = value.rstrip("/")
    host, sep, port = value.rpartition(":")
    if not sep:
        return value, 22
    if not port.isdigit():
        raise ValueError(f"invalid port in endpoint {endpoint!r}")
    if not host:
        raise ValueError(f"missing host in endpoint {endpoint!r}")
    return host, int(port)


def _load_host_keys_from_string(ssh: Any, keys_content: str) -> None:
    """Parse a known_hosts-formatted string into an SSHClient's host keys."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".known_hosts", delete=True) as tmp:
        tmp.write(keys_content)
        tmp.flush()
        ssh.load_host_keys(tmp.name)


class SftpOperator(Operator):
    """SFTP backend.

    Each operator opens one SSH connection in :meth:`open` and closes it in
    :meth:`close`. Blocking paramiko calls run in worker threads.

    :param host: SFTP server hostname (required, non-empty).
    :param port: SSH port (default: 22).
    :param root: Absolute root directory on the server (default: ``/``).
    :param user: SSH username.
    :param password: SSH password.
    :param key: Path to a private key file.
    :param known_hosts_strategy: Host key verification strategy.
    """

    def __init__(
        self,
        host: str,
        *,
        port: int = 22,
        root: str = "/",
        user: str | None = None,
        password: str | None = None,
        key: str | None = None,
        known_hosts_strategy: KnownHostsStrategy = KnownHostsStrategy.STRICT,
    ) -> None:
        if not host or not host.strip():
            raise ValueError("host must be a non-empty string")
        self._host = host
        self._port = port
        self._root = "/" + root.strip("/") if root.strip("/") else "/"
        self._user = user
        self._password = password
        self._key = key
        self._known_hosts_strategy = known_hosts_strategy
        self._ssh_client: Any = None
        self._sftp_client: Any = None

    @classmethod
    def from_config(cls, options: Mapping[str, str]) -> SftpOperator:
        host, port = _parse_endpoint(require_option(options, "endpoint", scheme="sftp"))
        return cls(
            host,
            port=port,
            root=options.get("root", "/"),
            user=options.get("user") or None,
            password=options.get("password") or None,
            key=options.get("key") or None,
            known_hosts_strategy=KnownHostsStrategy(options.get("known_hosts_strategy", "strict").lower()),
        )

    @property
    def scheme(self) -> str:
        return "sftp"

    @property
    def capabilities(self) -> CapabilitySet:
        return ALL_CAPABILITIES

    # region: connection

    async def open(self) -> None:
        try:
            await asyncio.to_thread(self._connect)
        except ImportError:
            raise BackendInitError(
                "The sftp backend requires paramiko; install unified-store[sftp]", backend=self.scheme
            ) from None
        except Exception as exc:
            await asyncio.to_thread(self._close_clients)
            raise BackendInitError(
                f"Cannot connect to {self._host}:{self._port}: {exc}", backend=self.scheme
            ) from None

    async def close(self) -> None:
        await asyncio.to_thread(self._close_clients)

    def _connect(self) -> None:
        ssh = self._create_ssh_client()
        self._ssh_client = ssh
        log.info("Connecting to %s:%d as %s", self._host, self._port, self._user)
        ssh.connect(
            hostname=self._host,
            port=self._port,
            username=self._user,
            password=self._password,
            key_filename=self._key,
            allow_agent=self._password is None and self._key is None,
            look_for_keys=self._password is None and self._key is None,
        )
        if self._known_hosts_strategy is KnownHostsStrategy.ADD and not os.environ.get(_HOST_KEYS_ENV):
            self._save_host_keys(ssh)
        self._sftp_client = ssh.open_sftp()
        log.info("SFTP connection established.")

    def _create_ssh_client(self) -> Any:
        """Create and configure an SSHClient with the host key strategy."""
        import paramiko

        ssh = paramiko.SSHClient()
        if keys := os.environ.get(_HOST_KEYS_ENV):
            _load_host_keys_from_string(ssh, keys)
        else:
            keys_path = os.path.expanduser("~/.ssh/known_hosts")
            if os.path.isfile(keys_path):
                ssh.load_host_keys(keys_path)

        if self._known_hosts_strategy is KnownHostsStrategy.ADD:
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        elif self._known_hosts_strategy is KnownHostsStrategy.ACCEPT:
            log.warning("Accepting any SFTP host key -- NOT safe for production.")
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        else:
            ssh.set_missing_host_key_policy(paramiko.RejectPolicy())
        return ssh

    @staticmethod
    def _save_host_keys(ssh: Any) -> None:
        keys_path = os.path.expanduser("~/.ssh/known_hosts")
        os.makedirs(os.path.dirname(keys_path), mode=0o700, exist_ok=True)
        ssh.save_host_keys(keys_path)
        log.info("Saved SFTP host keys to %s", keys_path)

    def _close_clients(self) -> None:
        """Close SFTP and SSH clients if open."""
        if self._sftp_client is not None:
            with contextlib.suppress(Exception):
                self._sftp_client.close()
            self._sftp_client = None
        if self._ssh_client is not None:
            with contextlib.suppress(Exception):
                self._ssh_client.close()
            self._ssh_client = None

    # endregion

    # region: path helpers

    def _sftp_path(self, path: StoragePath) -> str:
        """Convert a relative path to an absolute SFTP path."""
        rel = path.key.rstrip("/")
        if not rel:
            return self._root
        if self._root == "/":
            return f"/{rel}"
        return f"{self._root}/{rel}"

    def _ensure_dirs(self, sftp_path: str) -> None:
        """Create ``sftp_path`` and its missing ancestors."""
        current = ""
        for part in sftp_path.strip("/").split("/"):
            if not part:
                continue
            current = f"{current}/{part}"
            try:
                attrs = self._sftp_client.stat(current)
            except FileNotFoundError:
                self._sftp_client.mkdir(current)
                continue
            if not stat.S_ISDIR(attrs.st_mode or 0):
                raise IoError(f"Not a directory: {current}", path=current, backend=self.scheme)

    def _ensure_parent_dirs(self, sftp_path: str) -> None:
        parent = sftp_path.rsplit("/", 1)[0]
        if parent:
            self._ensure_dirs(parent)

    # endregion

    # region: error mapping

    @contextmanager
    def _errors(self, path: StoragePath) -> Iterator[None]:
        """Map paramiko/OS exceptions to unified_store errors."""
        try:
            yield
        except UnifiedStoreError:
            raise
        except FileNotFoundError:
            raise NotFoundError(f"Not found: {path}", path=path.key, backend=self.scheme) from None
        except PermissionError:  # pragma: no cover -- requires server-side perm setup
            raise PermissionDenied(f"Permission denied: {path}", path=path.key, backend=self.scheme) from None
        except OSError as exc:
            code = getattr(exc, "errno", None)
            if code == errno.ENOENT:
                raise NotFoundError(f"Not found: {path}", path=path.key, backend=self.scheme) from None
            if code == errno.EACCES:  # pragma: no cover
                raise PermissionDenied(f"Permission denied: {path}", path=path.key, backend=self.scheme) from None
            raise IoError(str(exc) or type(exc).__name__, path=path.key, backend=self.scheme) from None
        except Exception as exc:  # pragma: no cover -- SSH transport failures
            raise IoError(str(exc) or type(exc).__name__, path=path.key, backend=self.scheme) from None

    @staticmethod
    def _to_native(attrs: Any) -> NativeStat:
        mode = attrs.st_mode or 0
        if stat.S_ISDIR(mode):
            kind = EntryMode.DIR
        elif stat.S_ISREG(mode):
            kind = EntryMode.FILE
        else:
            kind = EntryMode.UNKNOWN
        modified = None
        if attrs.st_mtime is not None:
            modified = datetime.fromtimestamp(attrs.st_mtime, tz=timezone.utc)
        return NativeStat(size=int(attrs.st_size or 0), mode=kind, last_modified=modified)

    # endregion

    # region: blocking implementations

    def _read_sync(self, path: StoragePath) -> bytes:
        with self._errors(path):
            sftp_path = self._sftp_path(path)
            if stat.S_ISDIR(self._sftp_client.stat(sftp_path).st_mode or 0):
                raise IoError(f"Is a directory: {path}", path=path.key, backend=self.scheme)
            with self._sftp_client.file(sftp_path, "r") as f:
                f.prefetch()
                return bytes(f.read())

    def _write_sync(self, path: StoragePath, data: bytes) -> None:
        with self._errors(path):
            sftp_path = self._sftp_path(path)
            self._ensure_parent_dirs(sftp_path)
            with self._sftp_client.file(sftp_path, "w") as f:
                f.write(data)

    def _stat_sync(self, path: StoragePath) -> NativeStat:
        with self._errors(path):
            native = self._to_native(self._sftp_client.stat(self._sftp_path(path)))
        if path.is_dir and native.mode is not EntryMode.DIR:
            raise NotFoundError(f"Not a directory: {path}", path=path.key, backend=self.scheme)
        return native

    def _delete_sync(self, path: StoragePath) -> None:
        with self._errors(path):
            sftp_path = self._sftp_path(path)
            try:
                attrs = self._sftp_client.stat(sftp_path)
            except FileNotFoundError:
                return
            if stat.S_ISDIR(attrs.st_mode or 0):
                if self._sftp_client.listdir(sftp_path):
                    raise IoError(f"Directory not empty: {path}", path=path.key, backend=self.scheme)
                self._sftp_client.rmdir(sftp_path)
            elif path.is_dir:
                raise IoError(f"Not a directory: {path}", path=path.key, backend=self.scheme)
            else:
                self._sftp_client.remove(sftp_path)

    def _create_dir_sync(self, path: StoragePath) -> None:
        with self._errors(path):
            self._ensure_dirs(self._sftp_path(path))

    def _copy_sync(self, src: StoragePath, dst: StoragePath) -> None:
        with self._errors(src):
            src_sftp = self._sftp_path(src)
            dst_sftp = self._sftp_path(dst)
            try:
                self._sftp_client.stat(src_sftp)
            except FileNotFoundError:
                raise NotFoundError(f"Source not found: {src}", path=src.key, backend=self.scheme) from None
            self._ensure_parent_dirs(dst_sftp)
            # No server-side copy in SFTP: stream source to destination
            with self._sftp_client.file(src_sftp, "r") as src_f:
                with self._sftp_client.file(dst_sftp, "w") as dst_f:
                    shutil.copyfileobj(src_f, dst_f, _CHUNK_SIZE)

    def _rename_sync(self, src: StoragePath, dst: StoragePath) -> None:
        with self._errors(src):
            src_sftp = self._sftp_path(src)
            dst_sftp = self._sftp_path(dst)
            try:
                self._sftp_client.stat(src_sftp)
            except FileNotFoundError:
                raise NotFoundError(f"Source not found: {src}", path=src.key, backend=self.scheme) from None
            self._ensure_parent_dirs(dst_sftp)
            try:
                self._sftp_client.posix_rename(src_sftp, dst_sftp)
            except OSError:  # pragma: no cover -- fallback for servers without posix_rename
                with contextlib.suppress(FileNotFoundError):
                    self._sftp_client.remove(dst_sftp)
                self._sftp_client.rename(src_sftp, dst_sftp)

    def _list_sync(self, path: StoragePath) -> list[StoragePath]:
        with self._errors(path):
            try:
                entries = self._sftp_client.listdir_attr(self._sftp_path(path))
            except FileNotFoundError:
                return []
        return [
            path.child(attr.filename, is_dir=stat.S_ISDIR(attr.st_mode or 0))
            for attr in sorted(entries, key=lambda a: a.filename)
        ]

    # endregion

    # region: operations

    async def read(self, path: StoragePath) -> bytes:
        return await asyncio.to_thread(self._read_sync, path)

    async def write(self, path: StoragePath, data: bytes) -> None:
        await asyncio.to_thread(self._write_sync, path, data)

    async def stat(self, path: StoragePath) -> NativeStat:
        return await asyncio.to_thread(self._stat_sync, path)

    async def delete(self, path: StoragePath) -> None:
        await asyncio.to_thread(self._delete_sync, path)

    async def create_dir(self, path: StoragePath) -> None:
        await asyncio.to_thread(self._create_dir_sync, path)

    async def copy(self, src: StoragePath, dst: StoragePath) -> None:
        await asyncio.to_thread(self._copy_sync, src, dst)

    async def rename(self, src: StoragePath, dst: StoragePath) -> None:
        await asyncio.to_thread(self._rename_sync, src, dst)

    async def lister(self, path: StoragePath) -> AsyncIterator[StoragePath]:
        for child in await asyncio.to_thread(self._list_sync, path):
            yield child

    # endregion
