"""Host bookmark store access."""

from librarian.bookmarks.tree import BookmarkSource, flatten_tree, read_bookmark_tree

__all__ = ["BookmarkSource", "flatten_tree", "read_bookmark_tree"]
