"""Tests for bookmark tree flattening."""

from __future__ import annotations

import json
from pathlib import Path

from librarian.bookmarks.tree import BookmarkSource, flatten_tree, read_bookmark_tree
from librarian.models import BookmarkEntry


def _leaf(name: str) -> dict:
    return {"type": "url", "name": name.upper(), "url": f"https://{name}.example"}


def _folder(name: str, children: list) -> dict:
    return {"type": "folder", "name": name, "children": children}


class TestFlattenTree:
    """Test depth-first flattening."""

    def test_folders_flatten_in_order(self) -> None:
        tree = [_folder("A", [_leaf("x"), _leaf("y")]), _folder("B", [_leaf("z")])]

        entries = flatten_tree(tree)

        assert [entry.url for entry in entries] == [
            "https://x.example",
            "https://y.example",
            "https://z.example",
        ]

    def test_flatten_is_repeatable(self) -> None:
        tree = [_folder("A", [_leaf("x"), _folder("inner", [_leaf("y")])]), _leaf("z")]

        assert flatten_tree(tree) == flatten_tree(tree)

    def test_nested_and_interleaved(self) -> None:
        tree = [_leaf("a"), _folder("F", [_folder("G", [_leaf("b")]), _leaf("c")]), _leaf("d")]

        assert [entry.title for entry in flatten_tree(tree)] == ["A", "B", "C", "D"]

    def test_title_key_supported(self) -> None:
        entries = flatten_tree([{"url": "https://a", "title": "Alpha"}])

        assert entries == [BookmarkEntry(url="https://a", title="Alpha")]

    def test_malformed_nodes_skipped(self) -> None:
        tree = [{"name": "empty"}, {"children": []}, _leaf("a")]

        assert flatten_tree(tree) == [BookmarkEntry("https://a.example", "A")]

    def test_duplicates_kept(self) -> None:
        tree = [_folder("A", [_leaf("x")]), _folder("B", [_leaf("x")])]

        assert len(flatten_tree(tree)) == 2

    def test_missing_title_becomes_empty(self) -> None:
        assert flatten_tree([{"url": "https://a"}]) == [BookmarkEntry("https://a", "")]


class TestReadBookmarkTree:
    """Test reading Chromium bookmark files."""

    def _write(self, path: Path) -> Path:
        data = {
            "version": 1,
            "roots": {
                "synced": _folder("Mobile", [_leaf("m")]),
                "other": _folder("Other", [_leaf("o")]),
                "bookmark_bar": _folder("Bar", [_leaf("b")]),
                "workspace": _folder("Extra", [_leaf("w")]),
            },
        }
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_root_order(self, tmp_path: Path) -> None:
        path = self._write(tmp_path / "Bookmarks")

        roots = read_bookmark_tree(path)

        assert [root["name"] for root in roots] == ["Bar", "Other", "Mobile", "Extra"]

    def test_source_loads_entries(self, tmp_path: Path) -> None:
        source = BookmarkSource(self._write(tmp_path / "Bookmarks"))

        assert [entry.title for entry in source.load()] == ["B", "O", "M", "W"]

    def test_source_missing_file(self, tmp_path: Path) -> None:
        assert BookmarkSource(tmp_path / "missing").load() == []
