"""Web page fetching and salient-text chunking.

Pages are fetched with ``httpx`` and parsed with BeautifulSoup. Only a few of
the longest paragraphs are kept, which is enough to describe a bookmarked
page without uploading the whole document.
"""

from __future__ import annotations

import logging
from typing import List

import httpx
from bs4 import BeautifulSoup

from librarian.utils.text import chunk_text, collapse_whitespace, select_paragraphs

LOGGER = logging.getLogger(__name__)

SKIPPED_TAGS = ["script", "style", "noscript", "template"]

# Elements that end a line of text; inline tags such as <a> or <em> do not.
BLOCK_TAGS = [
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl", "dt",
    "figcaption", "footer", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr",
    "li", "main", "nav", "ol", "p", "pre", "section", "table", "td", "th", "tr", "ul",
]

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


def page_text(html: str) -> str:
    """Return the visible text of ``div`` elements, or of ``body`` if there are none."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(SKIPPED_TAGS):
        tag.decompose()
    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_before("\n")
        tag.insert_after("\n")

    divs = soup.find_all("div")
    if divs:
        return "\n".join(div.get_text() for div in divs)
    root = soup.body or soup
    return root.get_text()


def build_chunks(
    html: str,
    *,
    max_paragraphs: int = 3,
    min_paragraph_chars: int = 50,
    max_chars: int = 2000,
    overlap: int = 0,
    max_chunks: int = 4,
) -> List[str]:
    """Reduce an HTML document to at most ``max_chunks`` text chunks."""
    paragraphs = select_paragraphs(
        collapse_whitespace(page_text(html)),
        max_paragraphs=max_paragraphs,
        min_chars=min_paragraph_chars,
    )
    selected = "\n".join(paragraphs)
    chunks = []
    for chunk in chunk_text(selected, max_chars=max_chars, overlap=overlap):
        chunk = chunk.strip()
        if chunk:
            chunks.append(chunk)
        if len(chunks) >= max_chunks:
            break
    return chunks


class HTMLExtractor:
    """Fetches bookmarked pages and turns them into indexable chunks."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_paragraphs: int = 3,
        min_paragraph_chars: int = 50,
        chunk_chars: int = 2000,
        overlap: int = 0,
        max_chunks: int = 4,
    ) -> None:
        self.client = client
        self.max_paragraphs = max_paragraphs
        self.min_paragraph_chars = min_paragraph_chars
        self.chunk_chars = chunk_chars
        self.overlap = overlap
        self.max_chunks = max_chunks

    async def extract_chunks(self, url: str, title: str) -> List[str]:
        """Return the page's chunks, or ``[title]`` when nothing usable comes back.

        Responses that are not HTML (PDFs, images) also yield ``[title]``.
        Untitled bookmarks fall back to their URL instead.
        """
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
            if content_type and content_type not in HTML_CONTENT_TYPES:
                LOGGER.debug("Not an HTML page (%s): %s, using title", content_type, url)
                return [title or url]
            chunks = build_chunks(
                response.text,
                max_paragraphs=self.max_paragraphs,
                min_paragraph_chars=self.min_paragraph_chars,
                max_chars=self.chunk_chars,
                overlap=self.overlap,
                max_chunks=self.max_chunks,
            )
        except Exception as exc:
            LOGGER.debug("Falling back to title for %s: %s", url, exc)
            return [title or url]

        if not chunks:
            LOGGER.debug("No salient text in %s, using title", url)
            return [title or url]
        return chunks
