"""Sync bridge — run one coroutine to completion on a call-scoped event loop."""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

T = TypeVar("T")


def run_sync(func: Callable[..., Coroutine[Any, Any, T]], *args: Any) -> T:
    """Run ``func(*args)`` on a fresh event loop and return its result.

    The loop is created for this call only and closed on every exit path.
    There is no timeout and no cancellation: the calling thread blocks until
    the coroutine finishes. When the calling thread is already running an
    event loop, the coroutine runs on a fresh loop in a single-use worker
    thread instead.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(func(*args))
    with concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="unified-store-bridge") as pool:
        return pool.submit(lambda: asyncio.run(func(*args))).result()
