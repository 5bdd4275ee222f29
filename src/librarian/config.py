"""Application configuration defaults."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from librarian.embedding.encoder import DEFAULT_MODEL

DEFAULT_API_URL = "https://api.trieve.ai/api"
BACKENDS = ("remote", "local")


def _get_default_db_path() -> Path:
    """Get the default state database path based on platform."""
    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "Librarian" / "librarian.db"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "Librarian" / "librarian.db"
    return Path.home() / ".local" / "share" / "librarian" / "librarian.db"


def _get_default_bookmarks_path(profile: str = "Default") -> Path:
    """Locate the Chrome bookmarks file for ``profile``."""
    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "Google" / "Chrome" / "User Data" / profile / "Bookmarks"
    if sys.platform == "darwin":
        return (
            Path.home() / "Library" / "Application Support" / "Google" / "Chrome" / profile / "Bookmarks"
        )
    return Path.home() / ".config" / "google-chrome" / profile / "Bookmarks"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {name} value '{raw}': expected an integer") from exc
    if value < 1:
        raise ValueError(f"Invalid {name} value '{raw}': must be at least 1")
    return value


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    bookmarks_path: Path | None = None
    backend: str = "remote"
    api_url: str = DEFAULT_API_URL
    api_key: str | None = None
    dataset_id: str | None = None
    model_name: str = DEFAULT_MODEL
    score_threshold: float = 0.05
    page_size: int = 100
    concurrency: int = 8
    progress_every: int = 10
    max_paragraphs: int = 3
    min_paragraph_chars: int = 50
    chunk_chars: int = 2000
    overlap: int = 0
    max_chunks: int = 4
    fetch_timeout: float = 15.0
    interval_minutes: int = 60

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if self.bookmarks_path is None:
            self.bookmarks_path = _get_default_bookmarks_path()
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{self.backend}', expected one of {BACKENDS}")
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")

    @classmethod
    def from_env(cls, **overrides: object) -> "AppConfig":
        """Build a config from ``LIBRARIAN_*`` environment variables.

        Keyword overrides that are not ``None`` win over the environment.
        """
        values: dict[str, object] = {
            "backend": os.getenv("LIBRARIAN_BACKEND", "remote").lower(),
            "api_url": os.getenv("LIBRARIAN_API_URL", DEFAULT_API_URL),
            "api_key": os.getenv("LIBRARIAN_API_KEY") or None,
            "dataset_id": os.getenv("LIBRARIAN_DATASET_ID") or None,
            "model_name": os.getenv("LIBRARIAN_MODEL", DEFAULT_MODEL),
            "concurrency": _int_env("LIBRARIAN_CONCURRENCY", 8),
        }
        db = os.getenv("LIBRARIAN_DB")
        if db:
            values["db_path"] = Path(db).expanduser()
        bookmarks = os.getenv("LIBRARIAN_BOOKMARKS")
        if bookmarks:
            values["bookmarks_path"] = Path(bookmarks).expanduser()

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)  # type: ignore[arg-type]

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path
