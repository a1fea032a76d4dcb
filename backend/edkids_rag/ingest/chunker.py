"""Chunking utilities."""

from __future__ import annotations

import re
from typing import Iterator

_PARAGRAPH_RE = re.compile(r"\n{2,}")
_SEPARATOR = "\n\n"

DEFAULT_MAX_CHARS = 900


def chunk_text(text: str, max_length: int = DEFAULT_MAX_CHARS) -> list[str]:
    """Group paragraphs into chunks of at most ``max_length`` characters.

    Paragraphs are never split: one that is longer than ``max_length`` on its
    own becomes a chunk of its own. Output order is reading order.
    """
    if not text.strip():
        return []

    chunks: list[str] = []
    buffer = ""
    for paragraph in _iter_paragraphs(text):
        if len(buffer + _SEPARATOR + paragraph) > max_length:
            _flush(buffer, chunks)
            buffer = paragraph
        else:
            buffer = buffer + _SEPARATOR + paragraph if buffer else paragraph
    _flush(buffer, chunks)
    return chunks


def _iter_paragraphs(text: str) -> Iterator[str]:
    normalized = text.replace("\r\n", "\n")
    yield from _PARAGRAPH_RE.split(normalized)


def _flush(buffer: str, chunks: list[str]) -> None:
    trimmed = buffer.strip()
    if trimmed:
        chunks.append(trimmed)


__all__ = ["chunk_text", "DEFAULT_MAX_CHARS"]
