"""Per-profile session wiring the index backend, state and bookmarks together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import httpx

from librarian.bookmarks.tree import BookmarkSource
from librarian.config import AppConfig
from librarian.embedding.encoder import EmbeddingConfig, EmbeddingModel
from librarian.index.backends import ContentIndexer, LocalIndexer, RemoteIndexer
from librarian.index.indexer import Indexer, IndexStats
from librarian.index.search import Searcher
from librarian.index.storage import SQLiteStateStore, SQLiteVectorStore
from librarian.ingestion.html_loader import HTMLExtractor
from librarian.models import IndexingRun, ResultDocument
from librarian.remote.client import RemoteIndexClient

LOGGER = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; Librarian/0.1; +bookmark indexer)"


def create_backend(config: AppConfig, db_path: Path) -> ContentIndexer:
    """Build the content indexer selected by ``config.backend``."""
    if config.backend == "local":
        embedder = EmbeddingModel(EmbeddingConfig(model_name=config.model_name))
        store = SQLiteVectorStore(db_path, dimension=embedder.dimension)
        return LocalIndexer(embedder, store)
    return RemoteIndexer(RemoteIndexClient.from_config(config))


class Session:
    """One logical index per bookmark profile.

    Every collaborator is created lazily, once, and reused until ``aclose``.
    Callers own the lifetime, usually with ``async with Session(config)``.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        backend: ContentIndexer | None = None,
        state: SQLiteStateStore | None = None,
        bookmarks: BookmarkSource | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.bookmarks = bookmarks or BookmarkSource(config.bookmarks_path)
        self._backend = backend
        self._state = state
        self._http = http_client
        self._owns_http = http_client is None
        self._indexer: Indexer | None = None

    @property
    def db_path(self) -> Path:
        db_path = self.config.resolve_db_path(Path.cwd())
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return db_path

    @property
    def backend(self) -> ContentIndexer:
        if self._backend is None:
            LOGGER.debug("Creating %s backend", self.config.backend)
            self._backend = create_backend(self.config, self.db_path)
        return self._backend

    @property
    def state(self) -> SQLiteStateStore:
        if self._state is None:
            self._state = SQLiteStateStore(self.db_path)
        return self._state

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self.config.fetch_timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            )
        return self._http

    @property
    def indexer(self) -> Indexer:
        if self._indexer is None:
            extractor = HTMLExtractor(
                self.http,
                max_paragraphs=self.config.max_paragraphs,
                min_paragraph_chars=self.config.min_paragraph_chars,
                chunk_chars=self.config.chunk_chars,
                overlap=self.config.overlap,
                max_chunks=self.config.max_chunks,
            )
            self._indexer = Indexer(
                self.backend,
                extractor,
                self.state,
                concurrency=self.config.concurrency,
                progress_every=self.config.progress_every,
            )
        return self._indexer

    async def sync_all_bookmarks(self) -> IndexStats | None:
        return await self.indexer.sync_all(self.bookmarks.load())

    async def search(self, query: str) -> List[ResultDocument]:
        searcher = Searcher(
            self.backend,
            score_threshold=self.config.score_threshold,
            page_size=self.config.page_size,
        )
        return await searcher.search(query, self.bookmarks.load())

    async def count(self) -> int:
        return await self.backend.count()

    def run_state(self) -> IndexingRun:
        return self.state.load_run()

    def reset_state(self) -> None:
        self.state.clear()

    async def aclose(self) -> None:
        if self._backend is not None:
            await self._backend.aclose()
            self._backend = None
        if self._http is not None and self._owns_http:
            await self._http.aclose()
        self._http = None
        if self._state is not None:
            self._state.close()
            self._state = None
        self._indexer = None

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
