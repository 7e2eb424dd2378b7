"""Tests for StoragePath normalization."""

from __future__ import annotations

import pytest

from unified_store._errors import InvalidPath
from unified_store._path import StoragePath, join_root


class TestNormalization:
    @pytest.mark.parametrize(
        ("raw", "key"),
        [
            ("a.txt", "a.txt"),
            ("/a/b.txt", "a/b.txt"),
            ("a//b/./c.txt", "a/b/c.txt"),
            ("a\\b.txt", "a/b.txt"),
            ("dir/", "dir/"),
            ("/dir//sub/", "dir/sub/"),
            ("", ""),
            ("/", ""),
            ("./", ""),
        ],
    )
    def test_key(self, raw: str, key: str) -> None:
        assert StoragePath(raw).key == key

    def test_rejects_dotdot(self) -> None:
        with pytest.raises(InvalidPath, match=r"\.\."):
            StoragePath("a/../b")

    def test_rejects_null_byte(self) -> None:
        with pytest.raises(InvalidPath, match="null byte"):
            StoragePath("a\0b")

    def test_rejects_non_string(self) -> None:
        with pytest.raises(InvalidPath, match="must be a string"):
            StoragePath(None)  # type: ignore[arg-type]


class TestProperties:
    def test_root(self) -> None:
        root = StoragePath("")
        assert root.is_root
        assert root.is_dir
        assert root.name == ""

    def test_file(self) -> None:
        p = StoragePath("a/b/c.txt")
        assert not p.is_dir
        assert p.name == "c.txt"

    def test_dir(self) -> None:
        p = StoragePath("a/b/")
        assert p.is_dir
        assert p.name == "b/"

    def test_as_dir(self) -> None:
        assert StoragePath("a").as_dir().key == "a/"
        assert StoragePath("a/").as_dir().key == "a/"

    def test_child(self) -> None:
        assert StoragePath("dir/").child("x.txt").key == "dir/x.txt"
        assert StoragePath("dir").child("sub", is_dir=True).key == "dir/sub/"
        assert StoragePath("").child("x.txt").key == "x.txt"


class TestValueSemantics:
    def test_equality_and_hash(self) -> None:
        assert StoragePath("/a/b") == StoragePath("a/b")
        assert hash(StoragePath("/a/b")) == hash(StoragePath("a/b"))
        assert StoragePath("a") != StoragePath("a/")

    def test_ordering(self) -> None:
        assert sorted([StoragePath("b"), StoragePath("a")]) == [StoragePath("a"), StoragePath("b")]

    def test_str_and_repr(self) -> None:
        p = StoragePath("a/b")
        assert str(p) == "a/b"
        assert repr(p) == "StoragePath('a/b')"

    def test_immutable(self) -> None:
        p = StoragePath("a")
        with pytest.raises(AttributeError):
            p._key = "b"  # type: ignore[misc]


class TestJoinRoot:
    @pytest.mark.parametrize(
        ("root", "path", "expected"),
        [
            ("", "a.txt", "a.txt"),
            ("", "", ""),
            ("base", "a.txt", "base/a.txt"),
            ("/base/", "dir/", "base/dir/"),
            ("base", "", "base/"),
        ],
    )
    def test_join(self, root: str, path: str, expected: str) -> None:
        assert join_root(root, StoragePath(path)) == expected
