"""FastAPI application exposing search and indexing over HTTP."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from librarian.config import AppConfig
from librarian.remote.client import RemoteIndexError
from librarian.service import handle_message
from librarian.session import Session

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Librarian", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_session: Session | None = None


class SearchPayload(BaseModel):
    query: str
    limit: int = 20


class MessagePayload(BaseModel):
    action: str
    query: str | None = None


def get_session() -> Session:
    global _session
    if _session is None:
        _session = Session(AppConfig.from_env())
    return _session


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    global _session
    if _session is not None:
        await _session.aclose()
        _session = None


@app.post("/search")
async def search_bookmarks(
    payload: SearchPayload, session: Session = Depends(get_session)
) -> dict[str, Any]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    limit = max(1, min(payload.limit, 100))
    try:
        results = await session.search(query)
    except RemoteIndexError as exc:
        raise HTTPException(status_code=502, detail=f"Search failed: {exc}") from exc
    return {"results": [asdict(result) for result in results[:limit]]}


@app.post("/index")
async def index_bookmarks(session: Session = Depends(get_session)) -> dict[str, Any]:
    if session.indexer.running:
        raise HTTPException(status_code=409, detail="Indexing already in progress")

    stats = await session.sync_all_bookmarks()
    if stats is None:
        raise HTTPException(status_code=409, detail="Indexing already in progress")
    return {"status": "ok", "stats": asdict(stats)}


@app.get("/status")
async def indexing_status(session: Session = Depends(get_session)) -> dict[str, Any]:
    run = session.run_state()
    try:
        count = await session.count()
    except RemoteIndexError as exc:
        LOGGER.warning("Could not read index size: %s", exc)
        count = None
    return {
        "indexingInProgress": run.in_progress,
        "bookmarksLength": run.total,
        "bookmarksCounter": run.completed,
        "dbCount": count,
    }


@app.post("/message")
async def message(
    payload: MessagePayload, session: Session = Depends(get_session)
) -> Dict[str, Any]:
    response = await handle_message(session, payload.model_dump())
    if response is None:
        raise HTTPException(status_code=400, detail=f"Unsupported action: {payload.action}")
    return response
