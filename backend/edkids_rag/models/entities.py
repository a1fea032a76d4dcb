"""Internal dataclasses representing persisted entities and query-time views."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence


@dataclass(slots=True)
class Document:
    id: str
    subject: str
    topic_slug: str
    title: str
    created_at: datetime


@dataclass(slots=True)
class Chunk:
    id: str
    document_id: str
    chunk_index: int
    content: str
    embedding: list[float] | None
    created_at: datetime


@dataclass(slots=True)
class ChunkRow:
    """Chunk ready to be written; the store assigns its identifier."""

    chunk_index: int
    content: str
    embedding: Sequence[float] | None = None


@dataclass(slots=True)
class Candidate:
    """A stored chunk loaded for ranking."""

    chunk_id: str
    document_id: str
    subject: str
    topic_slug: str
    chunk_index: int
    content: str
    embedding: list[float] | None = None


@dataclass(slots=True)
class RetrievedChunk:
    chunk_id: str
    document_id: str
    subject: str
    topic_slug: str
    content: str
    chunk_index: int
    vec_score: float | None
    fts_score: float | None
    final_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunk_id": self.chunk_id,
            "doc_id": self.document_id,
            "subject": self.subject,
            "topic_slug": self.topic_slug,
            "content": self.content,
            "chunk_index": self.chunk_index,
            "vec_score": self.vec_score,
            "fts_score": self.fts_score,
            "final_score": self.final_score,
        }
