"""Tests for the FastAPI web application."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from librarian.index.indexer import IndexStats
from librarian.models import IndexingRun, ResultDocument
from librarian.remote.client import RemoteIndexError
from librarian.web.app import app, get_session


client = TestClient(app)


@pytest.fixture
def session():
    session = MagicMock()
    session.indexer.running = False
    session.search = AsyncMock(return_value=[])
    session.count = AsyncMock(return_value=7)
    session.sync_all_bookmarks = AsyncMock(return_value=IndexStats(indexed=1))
    session.run_state.return_value = IndexingRun(in_progress=False, total=3, completed=3)
    app.dependency_overrides[get_session] = lambda: session
    yield session
    app.dependency_overrides.clear()


class TestSearchEndpoint:
    """Tests for POST /search endpoint."""

    def test_search_empty_query(self, session) -> None:
        response = client.post("/search", json={"query": "   "})

        assert response.status_code == 400
        assert "Empty query" in response.json()["detail"]

    def test_search_success(self, session) -> None:
        session.search.return_value = [
            ResultDocument(url=f"https://{i}.example", title=f"T{i}", flavor_html="x")
            for i in range(5)
        ]

        response = client.post("/search", json={"query": " python ", "limit": 2})

        assert response.status_code == 200
        results = response.json()["results"]
        assert [result["title"] for result in results] == ["T0", "T1"]
        assert results[0] == {"url": "https://0.example", "title": "T0", "flavor_html": "x"}
        session.search.assert_awaited_once_with("python")

    def test_search_remote_failure(self, session) -> None:
        session.search.side_effect = RemoteIndexError("Search query returned 500")

        response = client.post("/search", json={"query": "python"})

        assert response.status_code == 502


class TestIndexEndpoint:
    def test_index_runs_sync(self, session) -> None:
        response = client.post("/index")

        assert response.status_code == 200
        assert response.json()["stats"]["indexed"] == 1

    def test_index_conflict_when_running(self, session) -> None:
        session.indexer.running = True

        response = client.post("/index")

        assert response.status_code == 409
        session.sync_all_bookmarks.assert_not_awaited()


class TestStatusEndpoint:
    def test_status(self, session) -> None:
        response = client.get("/status")

        assert response.status_code == 200
        assert response.json() == {
            "indexingInProgress": False,
            "bookmarksLength": 3,
            "bookmarksCounter": 3,
            "dbCount": 7,
        }

    def test_status_without_count(self, session) -> None:
        session.count.side_effect = RemoteIndexError("no dataset")

        response = client.get("/status")

        assert response.json()["dbCount"] is None


class TestMessageEndpoint:
    def test_search_message(self, session) -> None:
        session.search.return_value = [
            ResultDocument(url="https://a.example", title="Alpha", flavor_html="term")
        ]

        response = client.post("/message", json={"action": "search", "query": "term"})

        assert response.status_code == 200
        assert response.json() == {
            "result": [
                {"document": {"url": "https://a.example", "title": "Alpha", "flavor_html": "term"}}
            ],
            "dbCount": 7,
        }

    def test_unsupported_action(self, session) -> None:
        response = client.post("/message", json={"action": "ping"})

        assert response.status_code == 400
