"""S3-compatible object storage backend using s3fs in asynchronous mode."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from unified_store._capabilities import Capability, CapabilitySet
from unified_store._config import bool_option, require_option
from unified_store._errors import (
    BackendInitError,
    IoError,
    NotFoundError,
    PermissionDenied,
    UnifiedStoreError,
    UnsupportedOperation,
)
from unified_store._models import EntryMode, NativeStat
from unified_store._operator import Operator
from unified_store._path import StoragePath, join_root

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator, Mapping

log = logging.getLogger(__name__)

# S3 has no server-side rename.
_S3_CAPABILITIES = CapabilitySet({c for c in Capability if c is not Capability.RENAME})


class S3Operator(Operator):
    """S3-compatible object storage backend.

    Directories are key prefixes; ``create_dir`` writes an empty ``<dir>/``
    marker object.

    :param bucket: S3 bucket name (required, non-empty).
    :param root: Key prefix inside the bucket.
    :param endpoint: Custom endpoint URL (e.g. for MinIO).
    :param region: AWS region name.
    :param access_key_id: AWS access key ID.
    :param secret_access_key: AWS secret access key.
    :param session_token: AWS session token.
    :param anonymous: Use unsigned requests.
    """

    def __init__(
        self,
        bucket: str,
        *,
        root: str = "",
        endpoint: str | None = None,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        session_token: str | None = None,
        anonymous: bool = False,
    ) -> None:
        if not bucket or not bucket.strip():
            raise ValueError("bucket must be a non-empty string")
        self._bucket = bucket.strip("/")
        self._root = root.strip("/")
        self._endpoint = endpoint
        self._region = region
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._session_token = session_token
        self._anonymous = anonymous
        self._fs: Any = None
        self._session: Any = None

    @classmethod
    def from_config(cls, options: Mapping[str, str]) -> S3Operator:
        return cls(
            require_option(options, "bucket", scheme="s3"),
            root=options.get("root", ""),
            endpoint=options.get("endpoint") or None,
            region=options.get("region") or None,
            access_key_id=options.get("access_key_id") or None,
            secret_access_key=options.get("secret_access_key") or None,
            session_token=options.get("session_token") or None,
            anonymous=bool_option(options, "anonymous", scheme="s3"),
        )

    @property
    def scheme(self) -> str:
        return "s3"

    @property
    def capabilities(self) -> CapabilitySet:
        return _S3_CAPABILITIES

    # region: session lifecycle

    async def open(self) -> None:
        try:
            import s3fs  # type: ignore[import-untyped]
        except ImportError:
            raise BackendInitError(
                "The s3 backend requires s3fs; install unified-store[s3]", backend=self.scheme
            ) from None

        opts: dict[str, Any] = {"anon": self._anonymous}
        if self._endpoint is not None:
            opts["endpoint_url"] = self._endpoint
        if self._access_key_id is not None:
            opts["key"] = self._access_key_id
        if self._secret_access_key is not None:
            opts["secret"] = self._secret_access_key
        if self._session_token is not None:
            opts["token"] = self._session_token
        if self._region is not None:
            opts["client_kwargs"] = {"region_name": self._region}
        try:
            self._fs = s3fs.S3FileSystem(asynchronous=True, skip_instance_cache=True, **opts)
            self._session = await self._fs.set_session()
        except Exception as exc:
            raise BackendInitError(f"Cannot open S3 session: {exc}", backend=self.scheme) from None
        log.debug("Opened S3 session for bucket %s", self._bucket)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
        self._fs = None

    # endregion

    # region: path helpers

    def _key(self, path: StoragePath) -> str:
        return join_root(self._root, path)

    def _s3_path(self, path: StoragePath) -> str:
        return f"{self._bucket}/{self._key(path)}"

    def _rel(self, key: str) -> StoragePath:
        prefix = f"{self._root}/" if self._root else ""
        return StoragePath._from_key(key[len(prefix) :])

    # endregion

    # region: error mapping

    @contextmanager
    def _errors(self, path: StoragePath) -> Iterator[None]:
        """Map s3fs/botocore exceptions to unified_store errors."""
        try:
            yield
        except UnifiedStoreError:
            raise
        except FileNotFoundError:
            raise NotFoundError(f"Not found: {path}", path=path.key, backend=self.scheme) from None
        except PermissionError:  # pragma: no cover -- moto doesn't raise PermissionError
            raise PermissionDenied(f"Permission denied: {path}", path=path.key, backend=self.scheme) from None
        except Exception as exc:
            raise self._classify_error(exc, path) from None

    def _classify_error(self, exc: Exception, path: StoragePath) -> UnifiedStoreError:
        """Classify an unknown exception into a unified_store error type."""
        msg = str(exc).lower()
        if "404" in msg or "nosuchkey" in msg or "nosuchbucket" in msg or "not found" in msg:
            return NotFoundError(f"Not found: {path}", path=path.key, backend=self.scheme)
        if "403" in msg or "accessdenied" in msg or "access denied" in msg:
            return PermissionDenied(f"Permission denied: {path}", path=path.key, backend=self.scheme)
        return IoError(str(exc) or type(exc).__name__, path=path.key, backend=self.scheme)

    @staticmethod
    def _to_datetime(value: object) -> datetime | None:
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if not isinstance(value, datetime):
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    # endregion

    # region: read and write

    async def read(self, path: StoragePath) -> bytes:
        with self._errors(path):
            return bytes(await self._fs._cat_file(self._s3_path(path)))

    async def write(self, path: StoragePath, data: bytes) -> None:
        with self._errors(path):
            await self._fs._pipe_file(self._s3_path(path), data)

    # endregion

    # region: metadata

    async def _head(self, key: str) -> dict[str, Any] | None:
        try:
            return await self._fs._call_s3("head_object", Bucket=self._bucket, Key=key)
        except FileNotFoundError:
            return None
        except Exception as exc:
            if isinstance(self._classify_error(exc, StoragePath(key)), NotFoundError):
                return None
            raise

    async def _has_prefix(self, prefix: str) -> bool:
        resp = await self._fs._call_s3("list_objects_v2", Bucket=self._bucket, Prefix=prefix, MaxKeys=1)
        return bool(resp.get("KeyCount", 0) or resp.get("Contents") or resp.get("CommonPrefixes"))

    async def stat(self, path: StoragePath) -> NativeStat:
        if path.is_root:
            return NativeStat(size=0, mode=EntryMode.DIR)
        key = self._key(path)
        with self._errors(path):
            if not path.is_dir:
                head = await self._head(key)
                if head is not None:
                    return NativeStat(
                        size=int(head.get("ContentLength", 0) or 0),
                        mode=EntryMode.FILE,
                        last_modified=self._to_datetime(head.get("LastModified")),
                    )
                key = f"{key}/"
            marker = await self._head(key)
            if marker is not None:
                modified = self._to_datetime(marker.get("LastModified"))
                return NativeStat(size=0, mode=EntryMode.DIR, last_modified=modified)
            if await self._has_prefix(key):
                return NativeStat(size=0, mode=EntryMode.DIR)
        raise NotFoundError(f"Not found: {path}", path=path.key, backend=self.scheme)

    # endregion

    # region: mutation

    async def delete(self, path: StoragePath) -> None:
        key = self._key(path)
        with self._errors(path):
            if not path.is_dir:
                if await self._head(key) is not None:
                    await self._fs._call_s3("delete_object", Bucket=self._bucket, Key=key)
                    return
                key = f"{key}/"
            if await self._has_child(key):
                raise IoError(f"Directory not empty: {path}", path=path.key, backend=self.scheme)
            await self._fs._call_s3("delete_object", Bucket=self._bucket, Key=key)

    async def _has_child(self, dir_key: str) -> bool:
        resp = await self._fs._call_s3("list_objects_v2", Bucket=self._bucket, Prefix=dir_key, MaxKeys=2)
        return any(obj["Key"] != dir_key for obj in resp.get("Contents", []))

    async def create_dir(self, path: StoragePath) -> None:
        with self._errors(path):
            await self._fs._call_s3("put_object", Bucket=self._bucket, Key=self._key(path.as_dir()), Body=b"")

    async def copy(self, src: StoragePath, dst: StoragePath) -> None:
        with self._errors(src):
            if await self._head(self._key(src)) is None:
                raise NotFoundError(f"Source not found: {src}", path=src.key, backend=self.scheme)
            await self._fs._call_s3(
                "copy_object",
                Bucket=self._bucket,
                Key=self._key(dst),
                CopySource={"Bucket": self._bucket, "Key": self._key(src)},
            )

    async def rename(self, src: StoragePath, dst: StoragePath) -> None:
        raise UnsupportedOperation("S3 does not support rename", path=src.key, backend=self.scheme)

    # endregion

    # region: listing

    async def lister(self, path: StoragePath) -> AsyncIterator[StoragePath]:
        prefix = self._key(path.as_dir())
        kwargs: dict[str, Any] = {"Bucket": self._bucket, "Prefix": prefix, "Delimiter": "/"}
        while True:
            with self._errors(path):
                resp = await self._fs._call_s3("list_objects_v2", **kwargs)
            keys = [obj["Key"] for obj in resp.get("Contents", []) if obj["Key"] != prefix]
            keys += [p["Prefix"] for p in resp.get("CommonPrefixes", [])]
            for key in sorted(keys):
                yield self._rel(key)
            token = resp.get("NextContinuationToken")
            if not resp.get("IsTruncated") or not token:
                return
            kwargs["ContinuationToken"] = token

    # endregion
