"""Indexing, storage and search."""
