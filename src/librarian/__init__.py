"""Librarian - semantic search over browser bookmarks."""

__version__ = "0.1.0"
