"""Error handling — catching NotFoundError, InvalidPath, ConfigError, etc.

Demonstrates the error hierarchy, the operation context carried in every
message, and the string-only ``call`` boundary.
"""

from __future__ import annotations

import unified_store as us
from unified_store import (
    ConfigError,
    EncodingError,
    InvalidPath,
    NotFoundError,
    UnifiedStoreError,
    UnsupportedBackendError,
)

if __name__ == "__main__":
    # --- NotFoundError ---
    try:
        us.read("memory", "nonexistent.txt", {})
    except NotFoundError as exc:
        print(f"NotFoundError: {exc}")
        print(f"  path={exc.path}, backend={exc.backend}")

    # --- InvalidPath (path traversal attempt) ---
    try:
        us.read("memory", "../../etc/passwd", {})
    except InvalidPath as exc:
        print(f"\nInvalidPath: {exc}")

    # --- ConfigError (values must be strings) ---
    try:
        us.exists("fs", "a.txt", '{"root": 42}')
    except ConfigError as exc:
        print(f"\nConfigError: {exc}")

    # --- UnsupportedBackendError ---
    try:
        us.capability("ftp", {})
    except UnsupportedBackendError as exc:
        print(f"\nUnsupportedBackendError: {exc}")
        print(f"  scheme={exc.scheme}")

    # --- EncodingError is reported for non-UTF-8 content ---
    print(f"\nEncodingError is a UnifiedStoreError: {issubclass(EncodingError, UnifiedStoreError)}")

    # --- Catch any unified-store error with the base class ---
    for path in ["missing.txt", "dir/"]:
        try:
            us.read("memory", path, {})
        except UnifiedStoreError as exc:
            print(f"\nUnifiedStoreError ({type(exc).__name__}): {exc.message}")

    # --- The call boundary never raises for storage errors ---
    response = us.call("stat", "memory", "missing.txt", "{}")
    print(f"\ncall(): ok={response.ok} json={response.to_json()}")
