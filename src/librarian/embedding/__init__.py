"""Sentence-transformer embeddings for the on-device index."""
