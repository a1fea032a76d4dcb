"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

Subject = Literal["math", "english", "urdu", "science", "islamiat"]
Language = Literal["en", "ur"]
Grade = Literal["K", "1", "2", "3", "4", "5"]
TutorMode = Literal["auto", "chat", "quiz", "flashcards"]
Intent = Literal["explain", "practice", "encourage"]


class SearchRequest(BaseModel):
    query: str
    subject: Subject
    k: int = Field(default=6, ge=1, le=50)


class ChunkResult(BaseModel):
    chunk_id: str
    doc_id: str
    subject: str
    topic_slug: str
    content: str
    chunk_index: int
    vec_score: float | None
    fts_score: float | None
    final_score: float


class SearchResponse(BaseModel):
    results: list[ChunkResult]


class TutorRequest(BaseModel):
    subject: Subject
    language: Language = "en"
    grade: Grade = "3"
    input: str = ""
    mode: TutorMode = "auto"


class QuizItem(BaseModel):
    q: str
    a: str


class Flashcard(BaseModel):
    front: str
    back: str


class TutorResponse(BaseModel):
    intent: Intent
    explanation_kid: str
    hints: list[str] = Field(default_factory=list)
    quiz: list[QuizItem] = Field(default_factory=list)
    flashcards: list[Flashcard] = Field(default_factory=list)
    followups: list[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class IngestRequest(BaseModel):
    root: str | None = Field(default=None, description="Corpus root; defaults to the configured kb_root")


class IngestResponse(BaseModel):
    ok: bool
    stats: dict[str, int]
    results: list[dict[str, Any]]


__all__ = [
    "Subject",
    "Language",
    "SearchRequest",
    "SearchResponse",
    "ChunkResult",
    "TutorRequest",
    "TutorResponse",
    "QuizItem",
    "Flashcard",
    "IngestRequest",
    "IngestResponse",
]
