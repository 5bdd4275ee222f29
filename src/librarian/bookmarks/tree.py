"""Bookmark tree loading and flattening."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping

from librarian.models import BookmarkEntry

LOGGER = logging.getLogger(__name__)

# Order in which Chromium lists its top-level folders.
ROOT_FOLDERS = ("bookmark_bar", "other", "synced")


def flatten_tree(nodes: Iterable[Mapping[str, Any]]) -> List[BookmarkEntry]:
    """Flatten bookmark nodes depth-first into ``BookmarkEntry`` items.

    Children of a node are emitted before the node's own URL, siblings keep
    their relative order. Nodes with neither children nor a URL are ignored.
    """
    entries: List[BookmarkEntry] = []
    for node in nodes:
        children = node.get("children")
        if children:
            entries.extend(flatten_tree(children))

        url = node.get("url")
        if url:
            title = node.get("title", node.get("name", ""))
            entries.append(BookmarkEntry(url=url, title=title or ""))
    return entries


def read_bookmark_tree(path: Path) -> List[dict]:
    """Return the root folders of a Chromium ``Bookmarks`` file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    roots = data.get("roots", {})
    nodes = [roots[name] for name in ROOT_FOLDERS if isinstance(roots.get(name), dict)]
    # Anything Chromium adds later goes after the known folders.
    nodes.extend(
        value
        for name, value in roots.items()
        if name not in ROOT_FOLDERS and isinstance(value, dict)
    )
    return nodes


class BookmarkSource:
    """Reads the host bookmark store on demand."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> List[BookmarkEntry]:
        if not self.path.exists():
            LOGGER.warning("Bookmarks file not found: %s", self.path)
            return []
        return flatten_tree(read_bookmark_tree(self.path))
