"""Page fetching and text extraction."""
