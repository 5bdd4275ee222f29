"""Tests for SQLite state and vector stores."""

from pathlib import Path

import numpy as np
import pytest

from librarian.index.storage import (
    COUNTER_KEY,
    IN_PROGRESS_KEY,
    TOTAL_KEY,
    SQLiteStateStore,
    SQLiteVectorStore,
)


@pytest.fixture
def state_store(tmp_path):
    store = SQLiteStateStore(tmp_path / "state.db")
    yield store
    store.close()


@pytest.fixture
def vector_store(tmp_path):
    store = SQLiteVectorStore(tmp_path / "vectors.db", dimension=3)
    yield store
    store.close()


def _unit(*values: float) -> np.ndarray:
    vector = np.array(values, dtype="float32")
    return vector / np.linalg.norm(vector)


class TestSQLiteStateStore:
    def test_creates_database(self, tmp_path: Path) -> None:
        db_path = tmp_path / "new.db"
        store = SQLiteStateStore(db_path)

        assert db_path.exists()
        store.close()

    def test_get_default(self, state_store) -> None:
        assert state_store.get("missing") is None
        assert state_store.get("missing", 5) == 5

    def test_set_and_overwrite(self, state_store) -> None:
        state_store.set({"a": 1, "b": True})
        state_store.set({"a": 2})

        assert state_store.get("a") == 2
        assert state_store.get("b") is True

    def test_load_run_defaults(self, state_store) -> None:
        run = state_store.load_run()

        assert run.in_progress is False
        assert run.total == 0
        assert run.completed == 0

    def test_load_run(self, state_store) -> None:
        state_store.set({IN_PROGRESS_KEY: True, TOTAL_KEY: 23, COUNTER_KEY: 10})

        run = state_store.load_run()

        assert run.in_progress is True
        assert run.total == 23
        assert run.completed == 10

    def test_clear(self, state_store) -> None:
        state_store.set({IN_PROGRESS_KEY: True})
        state_store.clear()

        assert state_store.load_run().in_progress is False

    def test_persists_across_connections(self, tmp_path: Path) -> None:
        first = SQLiteStateStore(tmp_path / "state.db")
        first.set({COUNTER_KEY: 7})
        first.close()

        second = SQLiteStateStore(tmp_path / "state.db")
        assert second.get(COUNTER_KEY) == 7
        second.close()


class TestSQLiteVectorStore:
    def test_schema_creation(self, vector_store) -> None:
        cursor = vector_store.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='chunks'"
        )
        assert cursor.fetchone() is not None

    def test_insert_and_has_chunk(self, vector_store) -> None:
        assert vector_store.has_chunk("https://a") is False

        vector_store.insert_chunk(
            tracking_id="https://a", link="https://a", text="alpha", embedding=_unit(1, 0, 0)
        )

        assert vector_store.has_chunk("https://a") is True
        assert vector_store.count() == 1

    def test_insert_is_idempotent(self, vector_store) -> None:
        for text in ("first", "second"):
            vector_store.insert_chunk(
                tracking_id="https://a", link="https://a", text=text, embedding=_unit(1, 0, 0)
            )

        assert vector_store.count() == 1
        assert vector_store.search(_unit(1, 0, 0))[0]["text"] == "second"

    def test_dimension_mismatch(self, vector_store) -> None:
        with pytest.raises(ValueError, match="dimension"):
            vector_store.insert_chunk(
                tracking_id="x", link="x", text="x", embedding=np.ones(4, dtype="float32")
            )

    def test_search_orders_by_score(self, vector_store) -> None:
        vector_store.insert_chunk(tracking_id="a", link="https://a", text="a", embedding=_unit(1, 0, 0))
        vector_store.insert_chunk(tracking_id="b", link="https://b", text="b", embedding=_unit(0, 1, 0))
        vector_store.insert_chunk(tracking_id="c", link="https://c", text="c", embedding=_unit(1, 1, 0))

        rows = vector_store.search(_unit(1, 0.1, 0), top_k=2)

        assert [row["link"] for row in rows] == ["https://a", "https://c"]
        assert rows[0]["score"] > rows[1]["score"]

    def test_search_empty(self, vector_store) -> None:
        assert vector_store.search(_unit(1, 0, 0)) == []
