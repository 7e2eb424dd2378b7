"""Capability enum and CapabilitySet."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class Capability(enum.Enum):
    """Operations a backend may support."""

    READ = "read"
    WRITE = "write"
    LIST = "list"
    STAT = "stat"
    DELETE = "delete"
    COPY = "copy"
    RENAME = "rename"
    CREATE_DIR = "create_dir"


class CapabilitySet:
    """Immutable set of capabilities declared by a backend.

    Informational only: operations are dispatched whether or not the
    matching capability is declared.

    :param capabilities: The set of supported capabilities.
    """

    __slots__ = ("_caps",)
    _caps: frozenset[Capability]

    def __init__(self, capabilities: set[Capability]) -> None:
        object.__setattr__(self, "_caps", frozenset(capabilities))

    def supports(self, cap: Capability) -> bool:
        """Check whether a capability is supported."""
        return cap in self._caps

    def to_dict(self) -> dict[str, bool]:
        """One boolean flag per capability, keyed by its value."""
        return {cap.value: cap in self._caps for cap in Capability}

    def __getattr__(self, name: str) -> bool:
        try:
            cap = Capability(name)
        except ValueError:
            raise AttributeError(name) from None
        return cap in self._caps

    def __contains__(self, cap: object) -> bool:
        return cap in self._caps

    def __iter__(self) -> Iterator[Capability]:
        return iter(self._caps)

    def __len__(self) -> int:
        return len(self._caps)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CapabilitySet):
            return self._caps == other._caps
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._caps)

    def __repr__(self) -> str:
        names = sorted(c.name for c in self._caps)
        return f"CapabilitySet({{{', '.join(names)}}})"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("CapabilitySet is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("CapabilitySet is immutable")


ALL_CAPABILITIES = CapabilitySet(set(Capability))
