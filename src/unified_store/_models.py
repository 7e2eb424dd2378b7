"""Immutable metadata models and their normalization."""

from __future__ import annotations

import dataclasses
import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from unified_store._path import StoragePath


class EntryMode(enum.Enum):
    """Kind of object a backend reports."""

    FILE = "file"
    DIR = "dir"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True)
class NativeStat:
    """Backend-native stat result, before normalization.

    :param size: Content length in bytes as reported by the backend.
    :param mode: File, directory, or unknown.
    :param last_modified: Modification time, if the backend reports one.
    """

    size: int
    mode: EntryMode
    last_modified: Optional[datetime] = None


@dataclasses.dataclass(frozen=True)
class Metadata:
    """Portable metadata record.

    :param content_length: Size in bytes.
    :param is_file: Whether the path is a file.
    :param is_dir: Whether the path is a directory.
    :param last_modified: RFC3339 timestamp, or ``None`` when unknown.
    """

    content_length: int
    is_file: bool
    is_dir: bool
    last_modified: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "content_length": self.content_length,
            "is_file": self.is_file,
            "is_dir": self.is_dir,
        }
        if self.last_modified is not None:
            data["last_modified"] = self.last_modified
        return data


@dataclasses.dataclass(frozen=True)
class Entry:
    """One item of a listing.

    :param name: Final path component (directories keep a trailing ``/``).
    :param path: Path relative to the backend root.
    :param metadata: Normalized metadata fetched for this entry.
    """

    name: str
    path: str
    metadata: Metadata

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "path": self.path, "metadata": self.metadata.to_dict()}


def format_rfc3339(value: datetime) -> str:
    """Format a timestamp as RFC3339, treating naive values as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def normalize_metadata(native: NativeStat) -> Metadata:
    """Convert a backend-native stat result into a :class:`Metadata` record."""
    return Metadata(
        content_length=native.size,
        is_file=native.mode is EntryMode.FILE,
        is_dir=native.mode is EntryMode.DIR,
        last_modified=format_rfc3339(native.last_modified) if native.last_modified is not None else None,
    )


def make_entry(path: StoragePath, native: NativeStat) -> Entry:
    """Build a listing entry for ``path`` from its native stat."""
    return Entry(name=path.name, path=path.key, metadata=normalize_metadata(native))
