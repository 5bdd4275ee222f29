"""Content indexer backends.

Two interchangeable backends store and search bookmark chunks:

* ``RemoteIndexer`` talks to the hosted hybrid (lexical + vector) index.
* ``LocalIndexer`` embeds chunks with sentence-transformers and keeps them
  in a local SQLite vector store.
"""

from __future__ import annotations

import asyncio
import html
import re
from typing import List, Protocol

from librarian.embedding.encoder import EmbeddingModel
from librarian.index.storage import SQLiteVectorStore
from librarian.models import ChunkMetadata, SearchHit
from librarian.remote.client import RemoteIndexClient

_WORD = re.compile(r"\w+")


class ContentIndexer(Protocol):
    """Capability shared by every chunk index."""

    async def exists(self, tracking_id: str) -> bool: ...

    async def add_chunk(self, *, tracking_id: str, link: str, text: str) -> None: ...

    async def search(
        self, query: str, *, page_size: int, score_threshold: float
    ) -> List[SearchHit]: ...

    async def count(self) -> int: ...

    async def aclose(self) -> None: ...


class RemoteIndexer:
    def __init__(self, client: RemoteIndexClient) -> None:
        self.client = client

    async def exists(self, tracking_id: str) -> bool:
        return await self.client.chunk_exists(tracking_id)

    async def add_chunk(self, *, tracking_id: str, link: str, text: str) -> None:
        await self.client.create_chunk(chunk_html=text, link=link, tracking_id=tracking_id)

    async def search(
        self, query: str, *, page_size: int, score_threshold: float
    ) -> List[SearchHit]:
        return await self.client.search(
            query, page_size=page_size, page=0, score_threshold=score_threshold
        )

    async def count(self) -> int:
        return await self.client.count()

    async def aclose(self) -> None:
        await self.client.aclose()


def highlight_terms(text: str, query: str) -> str:
    """Escape ``text`` and wrap words that occur in ``query`` with ``<b>`` tags."""
    terms = {word.lower() for word in _WORD.findall(query)}
    if not terms:
        return html.escape(text)

    parts: List[str] = []
    last = 0
    for match in _WORD.finditer(text):
        parts.append(html.escape(text[last : match.start()]))
        word = html.escape(match.group())
        parts.append(f"<b>{word}</b>" if match.group().lower() in terms else word)
        last = match.end()
    parts.append(html.escape(text[last:]))
    return "".join(parts)


class LocalIndexer:
    """On-device semantic index.

    Embedding runs in a worker thread; all SQLite access stays on the event
    loop thread.
    """

    def __init__(self, embedder: EmbeddingModel, store: SQLiteVectorStore) -> None:
        self.embedder = embedder
        self.store = store

    async def exists(self, tracking_id: str) -> bool:
        return self.store.has_chunk(tracking_id)

    async def add_chunk(self, *, tracking_id: str, link: str, text: str) -> None:
        embedding = await asyncio.to_thread(self.embedder.embed_query, text)
        self.store.insert_chunk(tracking_id=tracking_id, link=link, text=text, embedding=embedding)

    async def search(
        self, query: str, *, page_size: int, score_threshold: float
    ) -> List[SearchHit]:
        embedding = await asyncio.to_thread(self.embedder.embed_query, query)
        rows = self.store.search(embedding, top_k=page_size)
        return [
            SearchHit(
                score=row["score"],
                metadata=[
                    ChunkMetadata(link=row["link"], chunk_html=highlight_terms(row["text"], query))
                ],
            )
            for row in rows
            if row["score"] >= score_threshold
        ]

    async def count(self) -> int:
        return self.store.count()

    async def aclose(self) -> None:
        self.store.close()
