"""Search interface and result assembly."""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Sequence

from librarian.index.backends import ContentIndexer
from librarian.models import BookmarkEntry, ResultDocument, SearchHit

LOGGER = logging.getLogger(__name__)

FLAVOR_SEPARATOR = "; "
_BOLD_TAG = re.compile(r"</?(?:b|strong)(?:\s[^>]*)?>", re.IGNORECASE)


def extract_flavor(chunk_html: str) -> str:
    """Join the bolded spans of ``chunk_html``; empty when nothing is bold."""
    segments = _BOLD_TAG.split(chunk_html)
    return FLAVOR_SEPARATOR.join(segments[1::2])


def assemble_results(
    hits: Iterable[SearchHit],
    bookmarks: Sequence[BookmarkEntry],
    *,
    score_threshold: float,
) -> List[ResultDocument]:
    """Turn raw hits into score-ordered documents titled from the bookmark list."""
    titles: Dict[str, str] = {bookmark.url: bookmark.title for bookmark in bookmarks}
    ranked = sorted(hits, key=lambda hit: hit.score, reverse=True)

    results: List[ResultDocument] = []
    for hit in ranked:
        if hit.score < score_threshold:
            continue
        for metadata in hit.metadata:
            results.append(
                ResultDocument(
                    url=metadata.link,
                    title=titles.get(metadata.link, metadata.link),
                    flavor_html=extract_flavor(metadata.chunk_html),
                )
            )
    return results


class Searcher:
    """High-level API to query the content index."""

    def __init__(
        self,
        backend: ContentIndexer,
        *,
        score_threshold: float = 0.05,
        page_size: int = 100,
    ) -> None:
        self.backend = backend
        self.score_threshold = score_threshold
        self.page_size = page_size

    async def search(
        self, query: str, bookmarks: Sequence[BookmarkEntry]
    ) -> List[ResultDocument]:
        hits = await self.backend.search(
            query, page_size=self.page_size, score_threshold=self.score_threshold
        )
        LOGGER.debug("Query %r returned %d hits", query, len(hits))
        return assemble_results(hits, bookmarks, score_threshold=self.score_threshold)
