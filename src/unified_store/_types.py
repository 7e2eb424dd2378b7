"""Type aliases used throughout unified_store."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Union

ConfigOptions = dict[str, str]
ConfigSource = Union[str, bytes, Mapping[str, object], None]  # noqa: UP007
JSONValue = Union[None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]]  # noqa: UP007
