"""Text helpers for paragraph selection and chunking."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List

_BLANK_LINES = re.compile(r"\n\s*\n")
_INLINE_SPACE = re.compile(r"[ \t\r\f\v\u00a0]+")


def chunk_text(text: str, *, max_chars: int = 2000, overlap: int = 0) -> Iterator[str]:
    """Split text into overlapping character chunks."""
    if not text:
        return iter(())

    step = max(max_chars - overlap, 1)
    return (text[start : start + max_chars] for start in range(0, len(text), step))


def collapse_whitespace(text: str) -> str:
    """Collapse runs of spaces inside each line and drop empty lines."""
    return normalize_whitespace(_INLINE_SPACE.sub(" ", line) for line in text.splitlines())


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def select_paragraphs(text: str, *, max_paragraphs: int = 3, min_chars: int = 50) -> List[str]:
    """Pick the longest distinct paragraphs of ``text``.

    Paragraphs shorter than ``min_chars`` are dropped, duplicates are kept
    once, and ties in length keep document order.
    """
    stripped = _BLANK_LINES.sub("\n", text.strip())
    seen: dict[str, None] = {}
    for paragraph in stripped.split("\n"):
        if len(paragraph) >= min_chars:
            seen.setdefault(paragraph, None)
    ranked = sorted(seen, key=len, reverse=True)
    return ranked[:max_paragraphs]
