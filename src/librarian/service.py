"""Entry points that trigger indexing and answer search requests."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from librarian.index.indexer import IndexStats
from librarian.remote.client import RemoteIndexError
from librarian.session import Session

LOGGER = logging.getLogger(__name__)


async def install(session: Session) -> IndexStats | None:
    """First-run setup: forget stale progress and index everything.

    Does nothing and returns ``None`` while a run is active, so its progress
    is not wiped.
    """
    if session.indexer.running:
        LOGGER.info("Indexing already in progress, not resetting state")
        return None
    session.reset_state()
    return await session.sync_all_bookmarks()


async def run_periodic(
    session: Session,
    *,
    interval_minutes: float | None = None,
    initial_run: bool = True,
    max_runs: int | None = None,
) -> None:
    """Re-index on a fixed interval until cancelled (or ``max_runs`` is reached)."""
    interval = 60 * (interval_minutes or session.config.interval_minutes)
    runs = 0
    if initial_run:
        await install(session)
        runs += 1

    while max_runs is None or runs < max_runs:
        await asyncio.sleep(interval)
        LOGGER.info("Scheduled re-index")
        await session.sync_all_bookmarks()
        runs += 1


async def _db_count(session: Session) -> int | None:
    try:
        return await session.count()
    except RemoteIndexError as exc:
        LOGGER.warning("Could not read index size: %s", exc)
        return None


async def handle_message(session: Session, message: Dict[str, Any]) -> Dict[str, Any] | None:
    """Answer a ``{"action": "search", "query": ...}`` request.

    Other actions are not handled here and yield ``None``. A failed search is
    reported through the ``error`` field with an empty result list.
    """
    if message.get("action") != "search":
        return None

    query = str(message.get("query") or "")
    try:
        documents = await session.search(query)
    except RemoteIndexError as exc:
        LOGGER.error("Search failed for %r: %s", query, exc)
        return {"result": [], "dbCount": await _db_count(session), "error": str(exc)}

    return {
        "result": [document.to_message() for document in documents],
        "dbCount": await _db_count(session),
    }
