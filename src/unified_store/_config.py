"""Configuration model — flat string-to-string backend options."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from typing import TYPE_CHECKING

from unified_store._errors import BackendInitError, ConfigError

if TYPE_CHECKING:
    from unified_store._types import ConfigOptions, ConfigSource


def resolve_config(value: ConfigSource) -> ConfigOptions:
    """Convert a JSON object into a flat ``dict[str, str]``.

    ``value`` is either an already parsed mapping or JSON text. Values are
    never coerced: numbers, booleans, arrays, objects and ``null`` are all
    rejected.

    :raises ConfigError: If the root is not an object or a value is not a string.
    """
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except ValueError as exc:
            raise ConfigError(f"invalid JSON: {exc}") from None
    if not isinstance(value, Mapping):
        raise ConfigError("root is not an object")
    options: ConfigOptions = {}
    for key, item in value.items():
        if not isinstance(item, str):
            raise ConfigError(f"value for key {str(key)!r} is not a string")
        options[str(key)] = item
    return options


@dataclasses.dataclass(frozen=True)
class BackendDescriptor:
    """Identifies a backend for exactly one call.

    :param scheme: Backend scheme identifier (e.g. ``"fs"``, ``"s3"``).
    :param options: Backend-specific string options.
    """

    scheme: str
    options: ConfigOptions = dataclasses.field(default_factory=dict)

    @classmethod
    def resolve(cls, scheme: str, config: ConfigSource) -> BackendDescriptor:
        """Validate ``config`` and pair it with ``scheme``.

        :raises ConfigError: If ``config`` is not a flat string object.
        """
        return cls(scheme=scheme, options=resolve_config(config))


def require_option(options: Mapping[str, str], key: str, *, scheme: str) -> str:
    """Return a required, non-blank option value.

    :raises BackendInitError: If the option is missing or blank.
    """
    value = options.get(key, "")
    if not value.strip():
        raise BackendInitError(f"{key} is required", backend=scheme)
    return value


def bool_option(options: Mapping[str, str], key: str, *, scheme: str, default: bool = False) -> bool:
    """Parse a ``"true"``/``"false"`` option.

    :raises BackendInitError: If the value is neither ``"true"`` nor ``"false"``.
    """
    raw = options.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise BackendInitError(f"{key} must be 'true' or 'false', got {raw!r}", backend=scheme)
