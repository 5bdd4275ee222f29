"""Core Librarian data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

CHUNK_SUFFIX = "#chunk-"


def tracking_id(url: str, chunk_index: int) -> str:
    """Return the idempotency key used for chunk ``chunk_index`` of ``url``.

    The first chunk is keyed by the URL itself so bookmarks indexed before
    multi-chunk support are still recognized by the existence check.
    """
    if chunk_index < 0:
        raise ValueError("chunk_index must be non-negative")
    if chunk_index == 0:
        return url
    return f"{url}{CHUNK_SUFFIX}{chunk_index}"


@dataclass(slots=True, frozen=True)
class BookmarkEntry:
    """A single bookmarked page."""

    url: str
    title: str


@dataclass(slots=True)
class IndexingRun:
    """State of the indexing pass currently (or last) running."""

    in_progress: bool = False
    total: int = 0
    completed: int = 0


@dataclass(slots=True)
class ChunkMetadata:
    link: str
    chunk_html: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ChunkMetadata":
        return cls(link=payload["link"], chunk_html=payload.get("chunk_html") or "")


@dataclass(slots=True)
class SearchHit:
    """Raw hit returned by a content indexer; one hit may carry several chunks."""

    score: float
    metadata: List[ChunkMetadata] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SearchHit":
        return cls(
            score=float(payload["score"]),
            metadata=[ChunkMetadata.from_payload(item) for item in payload["metadata"]],
        )


@dataclass(slots=True)
class ResultDocument:
    """Search result joined back to its bookmark."""

    url: str
    title: str
    flavor_html: str

    def to_message(self) -> Dict[str, Any]:
        return {
            "document": {
                "url": self.url,
                "title": self.title,
                "flavor_html": self.flavor_html,
            }
        }
