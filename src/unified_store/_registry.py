"""Scheme registry — resolves a backend identifier into a fresh operator."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from unified_store._errors import BackendInitError, UnifiedStoreError, UnsupportedBackendError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from unified_store._operator import Operator

log = logging.getLogger(__name__)


class Scheme(enum.Enum):
    """Closed set of supported storage schemes."""

    FS = "fs"
    MEMORY = "memory"
    S3 = "s3"
    SFTP = "sftp"

    @classmethod
    def parse(cls, name: str) -> Scheme:
        """Look up a scheme by its identifier.

        :raises UnsupportedBackendError: If ``name`` is not a known scheme.
        """
        try:
            return cls(name)
        except ValueError:
            supported = sorted(s.value for s in cls)
            raise UnsupportedBackendError(
                f"Unknown backend scheme {name!r}. Supported schemes: {supported}",
                scheme=str(name),
            ) from None

    def operator_class(self) -> type[Operator]:
        """Import and return the operator class for this scheme."""
        if self is Scheme.FS:
            from unified_store.backends._fs import FsOperator

            return FsOperator
        if self is Scheme.MEMORY:
            from unified_store.backends._memory import MemoryOperator

            return MemoryOperator
        if self is Scheme.S3:
            from unified_store.backends._s3 import S3Operator

            return S3Operator
        from unified_store.backends._sftp import SftpOperator

        return SftpOperator

    def build(self, options: Mapping[str, str]) -> Operator:
        """Construct an operator for this scheme.

        :raises BackendInitError: If the backend rejects ``options``.
        """
        cls = self.operator_class()
        try:
            return cls.from_config(options)
        except UnifiedStoreError:
            raise
        except (TypeError, ValueError) as exc:
            raise BackendInitError(
                f"Invalid options for backend (scheme={self.value!r}): {exc}. "
                f"Provided options: {sorted(options.keys())}",
                backend=self.value,
            ) from exc


def build_operator(scheme: str, options: Mapping[str, str]) -> Operator:
    """Resolve ``scheme`` and build a new operator from ``options``.

    :raises UnsupportedBackendError: If ``scheme`` is not registered.
    :raises BackendInitError: If the backend rejects ``options``.
    """
    resolved = Scheme.parse(scheme)
    log.debug("Building %s operator with options %s", resolved.value, sorted(options.keys()))
    return resolved.build(options)
