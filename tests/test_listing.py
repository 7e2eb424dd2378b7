"""Tests for listing aggregation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from unified_store._bridge import run_sync
from unified_store._errors import IoError, PermissionDenied
from unified_store._listing import collect_entries
from unified_store._path import StoragePath

if TYPE_CHECKING:
    from tests.conftest import RecordingOperator


class TestCollectEntries:
    def test_entries_in_lister_order(self, recording_operator: RecordingOperator) -> None:
        recording_operator.files = {"dir/b.txt": b"bb", "dir/a.txt": b"a"}
        entries = run_sync(collect_entries, recording_operator, StoragePath("dir/"))
        assert [e.path for e in entries] == ["dir/b.txt", "dir/a.txt"]
        assert [e.metadata.content_length for e in entries] == [2, 1]

    def test_one_stat_per_entry(self, recording_operator: RecordingOperator) -> None:
        recording_operator.files = {"dir/a": b"", "dir/b": b""}
        run_sync(collect_entries, recording_operator, StoragePath("dir"))
        assert recording_operator.calls == ["list:dir/", "stat:dir/a", "stat:dir/b"]

    def test_lists_directory_form(self, recording_operator: RecordingOperator) -> None:
        run_sync(collect_entries, recording_operator, StoragePath("dir"))
        assert recording_operator.calls == ["list:dir/"]

    def test_empty(self, recording_operator: RecordingOperator) -> None:
        assert run_sync(collect_entries, recording_operator, StoragePath("")) == []

    def test_stat_failure_aborts(self, recording_operator: RecordingOperator) -> None:
        recording_operator.files = {"dir/a": b"", "dir/b": b"", "dir/c": b""}
        recording_operator.fail_stat["dir/b"] = PermissionDenied("Permission denied: dir/b", path="dir/b")
        with pytest.raises(PermissionDenied, match="Failed to get metadata for entry 'dir/b'"):
            run_sync(collect_entries, recording_operator, StoragePath("dir/"))
        assert "stat:dir/c" not in recording_operator.calls

    def test_lister_failure_propagates(self, recording_operator: RecordingOperator) -> None:
        recording_operator.files = {"dir/a": b""}
        recording_operator.fail_list = IoError("connection reset")
        with pytest.raises(IoError, match="connection reset"):
            run_sync(collect_entries, recording_operator, StoragePath("dir/"))
