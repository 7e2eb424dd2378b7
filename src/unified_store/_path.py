"""StoragePath — immutable, validated path value object."""

from __future__ import annotations

from typing import Final

from unified_store._errors import InvalidPath


class StoragePath:
    """An immutable, normalized path relative to a backend root.

    Directory paths end with ``/``. The empty key is the root directory.

    :param raw: The raw path string to normalize and validate.
    :raises InvalidPath: If the path is malformed or unsafe.
    """

    __slots__ = ("_key",)
    _key: Final[str]  # type: ignore[misc]

    def __init__(self, raw: str) -> None:
        object.__setattr__(self, "_key", self._normalize(raw))

    @staticmethod
    def _normalize(raw: str) -> str:
        if not isinstance(raw, str):
            raise InvalidPath(f"Path must be a string, got {type(raw).__name__}")
        if "\0" in raw:
            raise InvalidPath("Path contains null byte", path=raw)
        # Backslash → forward slash
        p = raw.replace("\\", "/")
        parts: list[str] = []
        for segment in p.split("/"):
            if segment == "" or segment == ".":
                continue
            if segment == "..":
                raise InvalidPath("Path contains '..' segment", path=raw)
            parts.append(segment)
        if not parts:
            return ""
        key = "/".join(parts)
        return f"{key}/" if p.endswith("/") else key

    @classmethod
    def _from_key(cls, key: str) -> StoragePath:
        p = object.__new__(cls)
        object.__setattr__(p, "_key", key)
        return p

    @property
    def key(self) -> str:
        """Normalized key, with a trailing ``/`` for directories."""
        return self._key

    @property
    def is_root(self) -> bool:
        return self._key == ""

    @property
    def is_dir(self) -> bool:
        """``True`` for the root and for paths ending with ``/``."""
        return self._key == "" or self._key.endswith("/")

    @property
    def name(self) -> str:
        """Final component, keeping the trailing ``/`` of directories."""
        if self.is_root:
            return ""
        stripped = self._key.rstrip("/")
        last = stripped.rsplit("/", 1)[-1]
        return f"{last}/" if self.is_dir else last

    def as_dir(self) -> StoragePath:
        """Directory form of this path."""
        if self.is_dir:
            return self
        return StoragePath._from_key(f"{self._key}/")

    def child(self, name: str, *, is_dir: bool = False) -> StoragePath:
        """Join a single child name onto this directory path."""
        key = f"{self.as_dir()._key}{name.strip('/')}"
        return StoragePath._from_key(f"{key}/" if is_dir else key)

    def __str__(self) -> str:
        return self._key

    def __repr__(self) -> str:
        return f"StoragePath({self._key!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StoragePath):
            return self._key == other._key
        return NotImplemented

    def __lt__(self, other: StoragePath) -> bool:
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"StoragePath is immutable: cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"StoragePath is immutable: cannot delete '{name}'")


def join_root(root: str, path: StoragePath) -> str:
    """Join a backend root prefix (``"a/b"`` or ``""``) with a normalized path."""
    root = root.strip("/")
    if not root:
        return path.key
    if path.is_root:
        return f"{root}/"
    return f"{root}/{path.key}"
