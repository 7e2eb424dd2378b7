"""Backend test fixtures -- parameterized for conformance testing."""

from __future__ import annotations

import socket
import uuid
from typing import TYPE_CHECKING

import pytest

from unified_store._bridge import run_sync
from unified_store._path import StoragePath
from unified_store._registry import build_operator

from tests.backends.stores import SFTP_PASSWORD, SFTP_USER, Target, make_bucket, s3_config, sftp_config

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from unified_store._operator import Operator


def _s3_available() -> bool:
    try:
        import boto3  # noqa: F401
        import moto  # noqa: F401
        import s3fs  # noqa: F401

        return True
    except ImportError:
        return False


def _sftp_available() -> bool:
    try:
        import paramiko  # noqa: F401

        return True
    except ImportError:
        return False


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("", 0))
        return s.getsockname()[1]


@pytest.fixture(scope="session")
def moto_server() -> Iterator[str | None]:
    """Start a moto HTTP server for the test session.

    Server mode keeps aiobotocore talking real HTTP instead of patched
    botocore internals.
    """
    if not _s3_available():
        yield None
        return
    from moto.moto_server.threaded_moto_server import ThreadedMotoServer

    port = _free_port()
    server = ThreadedMotoServer(port=port, verbose=False)
    server.start()
    yield f"http://127.0.0.1:{port}"
    server.stop()


@pytest.fixture(scope="session")
def sftp_server(tmp_path_factory: pytest.TempPathFactory) -> Iterator[tuple[int, str] | None]:
    """Start an in-process SFTP server for the test session.

    Yields the port and a known_hosts line for the server's host key.
    """
    if not _sftp_available():
        yield None
        return

    from tests.backends.sftp_server import start_sftp_server, stop_sftp_server

    root = tmp_path_factory.mktemp("sftp_root")
    handle = start_sftp_server(root=str(root), username=SFTP_USER, password=SFTP_PASSWORD)
    host_key_entry = f"[127.0.0.1]:{handle.port} {handle.host_key.get_name()} {handle.host_key.get_base64()}"
    yield handle.port, host_key_entry
    stop_sftp_server(handle)


_s3_param = pytest.param(
    "s3",
    marks=[pytest.mark.integration, pytest.mark.skipif(not _s3_available(), reason="moto/s3fs not installed")],
)

_sftp_param = pytest.param(
    "sftp",
    marks=[pytest.mark.integration, pytest.mark.skipif(not _sftp_available(), reason="paramiko not installed")],
)


@pytest.fixture(params=["fs", "memory", _s3_param, _sftp_param])
def target(
    request: pytest.FixtureRequest,
    tmp_path: Path,
    moto_server: str | None,
    sftp_server: tuple[int, str] | None,
) -> Target:
    """Parameterized ``(scheme, config)`` pair. Add new backends here."""
    if request.param == "fs":
        return "fs", {"root": str(tmp_path / "store")}
    if request.param == "memory":
        return "memory", {"root": f"conformance-{uuid.uuid4().hex[:8]}"}
    if request.param == "s3":
        assert moto_server is not None
        return "s3", s3_config(moto_server, make_bucket(moto_server))
    if request.param == "sftp":
        assert sftp_server is not None
        return "sftp", sftp_config(sftp_server[0])
    pytest.skip(f"Unknown backend: {request.param}")


async def _write_bytes(op: Operator, path: StoragePath, data: bytes) -> None:
    async with op:
        await op.write(path, data)


@pytest.fixture()
def write_bytes(target: Target) -> Callable[[str, bytes], None]:
    """Write raw bytes through an operator, bypassing UTF-8 encoding."""
    scheme, config = target

    def _write(path: str, data: bytes) -> None:
        run_sync(_write_bytes, build_operator(scheme, config), StoragePath(path), data)

    return _write
