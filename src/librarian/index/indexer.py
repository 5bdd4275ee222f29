"""Bookmark indexing pipeline."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from librarian.index.backends import ContentIndexer
from librarian.index.storage import COUNTER_KEY, IN_PROGRESS_KEY, TOTAL_KEY
from librarian.ingestion.html_loader import HTMLExtractor
from librarian.models import BookmarkEntry, IndexingRun, tracking_id

LOGGER = logging.getLogger(__name__)


class StateWriter(Protocol):
    def set(self, values: dict[str, Any]) -> None: ...


@dataclass(slots=True)
class BookmarkResult:
    status: str
    chunks_uploaded: int = 0
    chunks_failed: int = 0


@dataclass(slots=True)
class IndexStats:
    indexed: int = 0
    partial: int = 0
    skipped: int = 0
    failed: int = 0
    chunks_uploaded: int = 0
    chunks_failed: int = 0

    def increment(self, result: BookmarkResult) -> None:
        if result.status == "indexed":
            self.indexed += 1
        elif result.status == "partial":
            self.partial += 1
        elif result.status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.chunks_uploaded += result.chunks_uploaded
        self.chunks_failed += result.chunks_failed


class ProgressTracker:
    """Counts finished bookmarks and persists the counter in coarse steps."""

    def __init__(self, state: StateWriter, total: int, *, every: int = 10) -> None:
        self.state = state
        self.every = max(every, 1)
        self.run = IndexingRun(in_progress=False, total=total, completed=0)

    def start(self) -> None:
        self.run.in_progress = True
        self.run.completed = 0
        self.state.set(
            {IN_PROGRESS_KEY: True, TOTAL_KEY: self.run.total, COUNTER_KEY: 0}
        )

    def advance(self) -> None:
        self.run.completed += 1
        completed = self.run.completed
        if completed % self.every == 0 or completed == self.run.total:
            self.state.set({COUNTER_KEY: completed})

    def finish(self) -> None:
        self.run.in_progress = False
        self.state.set({IN_PROGRESS_KEY: False})


class Indexer:
    """Keeps the content index in sync with the bookmark list."""

    def __init__(
        self,
        backend: ContentIndexer,
        extractor: HTMLExtractor,
        state: StateWriter,
        *,
        concurrency: int = 8,
        progress_every: int = 10,
    ) -> None:
        self.backend = backend
        self.extractor = extractor
        self.state = state
        self.concurrency = concurrency
        self.progress_every = progress_every
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def sync_bookmark(self, bookmark: BookmarkEntry) -> BookmarkResult:
        """Index one bookmark. Never raises."""
        try:
            return await self._sync_bookmark(bookmark)
        except Exception:
            LOGGER.exception("Unexpected failure while indexing %s", bookmark.url)
            return BookmarkResult("failed")

    async def _sync_bookmark(self, bookmark: BookmarkEntry) -> BookmarkResult:
        url = bookmark.url
        try:
            if await self.backend.exists(tracking_id(url, 0)):
                LOGGER.debug("Already indexed: %s", url)
                return BookmarkResult("skipped")
        except Exception as exc:
            # Not retried; the next scheduled run picks the bookmark up again.
            LOGGER.debug("Existence check failed for %s, skipping: %s", url, exc)
            return BookmarkResult("skipped")

        chunks = await self.extractor.extract_chunks(url, bookmark.title)

        result = BookmarkResult("indexed")
        for index, chunk in enumerate(chunks):
            try:
                await self.backend.add_chunk(
                    tracking_id=tracking_id(url, index), link=url, text=chunk
                )
                result.chunks_uploaded += 1
            except Exception as exc:
                LOGGER.error("Failed to upload chunk %d of %s: %s", index, url, exc)
                result.chunks_failed += 1

        if result.chunks_failed and result.chunks_uploaded:
            result.status = "partial"
        elif result.chunks_failed:
            result.status = "failed"
        return result

    async def sync_all(self, bookmarks: Sequence[BookmarkEntry]) -> IndexStats | None:
        """Index every bookmark concurrently.

        Returns ``None`` without doing anything when a run is already active.
        """
        if self._running:
            LOGGER.info("Indexing already in progress, ignoring new request")
            return None

        self._running = True
        try:
            return await self._sync_all(bookmarks)
        finally:
            self._running = False

    async def _sync_all(self, bookmarks: Sequence[BookmarkEntry]) -> IndexStats:
        stats = IndexStats()
        progress = ProgressTracker(self.state, len(bookmarks), every=self.progress_every)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run_one(bookmark: BookmarkEntry) -> None:
            async with semaphore:
                result = await self.sync_bookmark(bookmark)
            stats.increment(result)
            progress.advance()

        LOGGER.info("Started indexing %d bookmarks", len(bookmarks))
        progress.start()
        try:
            await asyncio.gather(*(run_one(bookmark) for bookmark in bookmarks))
        finally:
            progress.finish()

        LOGGER.info(
            "Finished indexing: indexed=%d partial=%d skipped=%d failed=%d",
            stats.indexed,
            stats.partial,
            stats.skipped,
            stats.failed,
        )
        return stats
