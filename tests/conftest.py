import json
from pathlib import Path

import pytest

from librarian.config import AppConfig


@pytest.fixture
def bookmarks_file(tmp_path: Path) -> Path:
    """A Chromium bookmarks file with three pages in two folders."""
    data = {
        "roots": {
            "bookmark_bar": {
                "name": "Bookmarks bar",
                "children": [
                    {"name": "Python", "url": "https://python.example/"},
                    {"name": "Rust", "url": "https://rust.example/"},
                ],
            },
            "other": {
                "name": "Other",
                "children": [{"name": "Pasta", "url": "https://pasta.example/"}],
            },
        }
    }
    path = tmp_path / "Bookmarks"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def app_config(tmp_path: Path, bookmarks_file: Path) -> AppConfig:
    return AppConfig(db_path=tmp_path / "state" / "librarian.db", bookmarks_path=bookmarks_file)
