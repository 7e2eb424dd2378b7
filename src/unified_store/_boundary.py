"""Call boundary — turn operation outcomes into plain values or error text."""

from __future__ import annotations

import dataclasses
import inspect
import json
import logging
from typing import TYPE_CHECKING, Any, Optional

from unified_store import _ops
from unified_store._capabilities import CapabilitySet
from unified_store._errors import UnifiedStoreError
from unified_store._models import Entry, Metadata

if TYPE_CHECKING:
    from collections.abc import Callable

    from unified_store._types import JSONValue

log = logging.getLogger(__name__)

OPERATIONS: dict[str, Callable[..., Any]] = {
    "read": _ops.read,
    "write": _ops.write,
    "exists": _ops.exists,
    "delete": _ops.delete,
    "stat": _ops.stat,
    "create_dir": _ops.create_dir,
    "copy": _ops.copy,
    "rename": _ops.rename,
    "list": _ops.list_entries,
    "capability": _ops.capability,
}


@dataclasses.dataclass(frozen=True)
class Response:
    """Outcome of one call: a JSON-ready value or an error message.

    :param value: The operation result, when it succeeded.
    :param error: The error message, when it failed.
    """

    value: JSONValue = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_json(self) -> str:
        if self.ok:
            return json.dumps({"value": self.value})
        return json.dumps({"error": self.error})


def to_plain(value: object) -> JSONValue:
    """Convert an operation result to JSON-ready data."""
    if isinstance(value, (Metadata, Entry, CapabilitySet)):
        return value.to_dict()  # type: ignore[return-value]
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    return value  # type: ignore[return-value]


def call(operation: str, *args: object) -> Response:
    """Invoke ``operation`` with positional ``args`` and capture its outcome.

    Arguments follow the Python entry points, e.g.
    ``call("copy", "fs", "a.txt", "b.txt", {"root": "/tmp/data"})``.
    """
    func = OPERATIONS.get(operation)
    if func is None:
        return Response(error=f"Unknown operation {operation!r}. Available operations: {sorted(OPERATIONS)}")
    try:
        inspect.signature(func).bind(*args)
    except TypeError as exc:
        return Response(error=f"Invalid arguments for {operation!r}: {exc}")
    try:
        result = func(*args)
    except UnifiedStoreError as exc:
        log.debug("%s failed: %s", operation, exc)
        return Response(error=str(exc))
    return Response(value=to_plain(result))
