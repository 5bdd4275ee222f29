"""Client for the hosted hybrid search service."""
