"""Listing aggregation — enumerate a directory and attach metadata to every entry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from unified_store._errors import UnifiedStoreError
from unified_store._models import make_entry

if TYPE_CHECKING:
    from unified_store._models import Entry
    from unified_store._operator import Operator
    from unified_store._path import StoragePath


async def collect_entries(operator: Operator, path: StoragePath) -> list[Entry]:
    """Buffer the listing of ``path`` with one stat per entry.

    Stats run sequentially against the same operator, in lister order. Any
    failure propagates and the entries gathered so far are dropped.
    """
    entries: list[Entry] = []
    async for child in operator.lister(path.as_dir()):
        try:
            native = await operator.stat(child)
        except UnifiedStoreError as exc:
            raise exc.with_context(f"Failed to get metadata for entry '{child}'") from exc
        entries.append(make_entry(child, native))
    return entries
