"""Normalized error hierarchy for unified_store."""

from __future__ import annotations

import copy
from typing import Optional, TypeVar

E = TypeVar("E", bound="UnifiedStoreError")


class UnifiedStoreError(Exception):
    """Base class for all unified_store errors.

    :param message: Human-readable error description.
    :param path: The path involved in the error, if any.
    :param backend: The backend scheme involved, if any.
    """

    def __init__(self, message: str = "", *, path: Optional[str] = None, backend: Optional[str] = None) -> None:
        self.path = path
        self.backend = backend
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.args[0] if self.args else ""

    def with_context(self: E, context: str) -> E:
        """Return a copy of this error whose message is prefixed with ``context``."""
        clone = copy.copy(self)
        clone.args = (f"{context}: {self.message}" if self.message else context,)
        return clone

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.path is not None:
            parts.append(f"path={self.path!r}")
        if self.backend is not None:
            parts.append(f"backend={self.backend!r}")
        return " | ".join(parts) if len(parts) > 1 else parts[0]

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(self.message)]
        if self.path is not None:
            args.append(f"path={self.path!r}")
        if self.backend is not None:
            args.append(f"backend={self.backend!r}")
        return f"{cls}({', '.join(args)})"


class ConfigError(UnifiedStoreError):
    """Raised when a backend configuration is not a flat string-to-string object."""


class UnsupportedBackendError(UnifiedStoreError):
    """Raised when a backend scheme is not in the registry.

    :param scheme: The unknown scheme identifier.
    """

    def __init__(self, message: str = "", *, scheme: str = "") -> None:
        self.scheme = scheme
        super().__init__(message, backend=scheme or None)


class BackendInitError(UnifiedStoreError):
    """Raised when a backend rejects its configuration or cannot be opened."""


class InvalidArgument(UnifiedStoreError):
    """Raised when an operation argument has the wrong type."""


class InvalidPath(InvalidArgument):
    """Raised for malformed or unsafe paths."""


class EncodingError(UnifiedStoreError):
    """Raised when file content is not valid UTF-8 text."""


class IoError(UnifiedStoreError):
    """Raised when a backend operation fails."""


class NotFoundError(IoError):
    """Raised when a file or directory does not exist."""


class PermissionDenied(IoError):
    """Raised when access is denied by the storage backend."""


class UnsupportedOperation(IoError):
    """Raised when a backend cannot perform the requested operation."""
