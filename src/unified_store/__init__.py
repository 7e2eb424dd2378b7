"""Unified synchronous facade over asynchronous storage backends."""

from unified_store._boundary import Response, call
from unified_store._bridge import run_sync
from unified_store._capabilities import Capability, CapabilitySet
from unified_store._config import BackendDescriptor, resolve_config
from unified_store._errors import (
    BackendInitError,
    ConfigError,
    EncodingError,
    InvalidArgument,
    InvalidPath,
    IoError,
    NotFoundError,
    PermissionDenied,
    UnifiedStoreError,
    UnsupportedBackendError,
    UnsupportedOperation,
)
from unified_store._models import Entry, EntryMode, Metadata, NativeStat, normalize_metadata
from unified_store._operator import Operator
from unified_store._ops import (
    capability,
    copy,
    create_dir,
    delete,
    exists,
    list_entries,
    read,
    rename,
    stat,
    write,
)
from unified_store._path import StoragePath
from unified_store._registry import Scheme, build_operator

__version__ = "0.1.0"

__all__ = [
    # Operations
    "read",
    "write",
    "exists",
    "delete",
    "stat",
    "create_dir",
    "copy",
    "rename",
    "list_entries",
    "capability",
    # Call boundary
    "call",
    "Response",
    # Backends
    "Scheme",
    "Operator",
    "build_operator",
    "run_sync",
    # Config
    "BackendDescriptor",
    "resolve_config",
    # Path & Models
    "StoragePath",
    "Metadata",
    "Entry",
    "EntryMode",
    "NativeStat",
    "normalize_metadata",
    # Capabilities
    "Capability",
    "CapabilitySet",
    # Errors
    "UnifiedStoreError",
    "ConfigError",
    "UnsupportedBackendError",
    "BackendInitError",
    "InvalidArgument",
    "InvalidPath",
    "EncodingError",
    "IoError",
    "NotFoundError",
    "PermissionDenied",
    "UnsupportedOperation",
    # Version
    "__version__",
]
