"""SQLite persistence for run state and the on-device vector index."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List

import numpy as np

from librarian.models import IndexingRun

IN_PROGRESS_KEY = "librarian-ops-indexingInProgress"
TOTAL_KEY = "librarian-ops-bookmarksLength"
COUNTER_KEY = "librarian-ops-bookmarksCounter"


def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


class _SQLiteStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn = _connect(self.db_path)
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        raise NotImplementedError


class SQLiteStateStore(_SQLiteStore):
    """Small key-value store holding JSON values, used for indexing progress."""

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

    def get(self, key: str, default: Any = None) -> Any:
        row = self._conn.execute("SELECT value FROM state WHERE key = ?", (key,)).fetchone()
        if row is None:
            return default
        return json.loads(row["value"])

    def set(self, values: dict[str, Any]) -> None:
        with self.transaction() as conn:
            conn.executemany(
                """
                INSERT INTO state(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
                """,
                [(key, json.dumps(value)) for key, value in values.items()],
            )

    def clear(self) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM state")

    def load_run(self) -> IndexingRun:
        return IndexingRun(
            in_progress=bool(self.get(IN_PROGRESS_KEY, False)),
            total=int(self.get(TOTAL_KEY, 0)),
            completed=int(self.get(COUNTER_KEY, 0)),
        )


class SQLiteVectorStore(_SQLiteStore):
    """Chunk embeddings for the on-device backend."""

    def __init__(self, db_path: Path, *, dimension: int) -> None:
        self.dimension = dimension
        super().__init__(db_path)

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chunks (
                    id INTEGER PRIMARY KEY,
                    tracking_id TEXT NOT NULL UNIQUE,
                    link TEXT NOT NULL,
                    text TEXT NOT NULL,
                    embedding BLOB NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_chunks_link ON chunks(link)")

    def has_chunk(self, tracking_id: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM chunks WHERE tracking_id = ?", (tracking_id,)
        ).fetchone()
        return row is not None

    def insert_chunk(self, *, tracking_id: str, link: str, text: str, embedding: np.ndarray) -> None:
        vector = np.asarray(embedding, dtype="float32")
        if vector.shape != (self.dimension,):
            raise ValueError(
                f"Embedding dimension mismatch: expected {self.dimension}, got {vector.shape}"
            )
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO chunks(tracking_id, link, text, embedding)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(tracking_id) DO UPDATE SET
                    link = excluded.link,
                    text = excluded.text,
                    embedding = excluded.embedding
                """,
                (tracking_id, link, text, sqlite3.Binary(vector.tobytes())),
            )

    def count(self) -> int:
        return int(self._conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0])

    def search(self, embedding: np.ndarray, *, top_k: int = 100) -> List[dict]:
        query = np.asarray(embedding, dtype="float32")
        rows = self._conn.execute("SELECT link, text, embedding FROM chunks").fetchall()
        if not rows:
            return []

        embeddings = np.vstack([np.frombuffer(row["embedding"], dtype="float32") for row in rows])
        scores = embeddings @ query

        if top_k < len(scores):
            top_indices = np.argpartition(scores, -top_k)[-top_k:]
            top_indices = top_indices[np.argsort(scores[top_indices])[::-1]]
        else:
            top_indices = np.argsort(scores)[::-1]

        return [
            {"link": rows[idx]["link"], "text": rows[idx]["text"], "score": float(scores[idx])}
            for idx in top_indices
        ]
