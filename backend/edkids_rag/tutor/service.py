"""Tutoring request flow: retrieve notes, ask the completer, fall back."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from pydantic import ValidationError

from edkids_rag.core.errors import StoreError
from edkids_rag.core.logging import get_logger
from edkids_rag.models.dto import Language, TutorRequest, TutorResponse
from edkids_rag.models.entities import RetrievedChunk
from edkids_rag.retrieval.search import HybridRetriever
from edkids_rag.tutor.fallback import fallback_from_chunks

logger = get_logger(__name__)

DEFAULT_QUERY = "basics"

# Generative step: receives the retrieved chunks and the request, returns a
# payload shaped like TutorResponse. Opaque and allowed to fail.
Completer = Callable[[Sequence[RetrievedChunk], TutorRequest], Mapping[str, Any]]

_NO_NOTES: dict[str, dict[str, Any]] = {
    "en": {
        "explanation_kid": "I couldn't find notes yet. Let's start with a simple step!",
        "followups": ["Would you like multiplication or percentages?"],
    },
    "ur": {
        "explanation_kid": "ہم اس موضوع کے نوٹس نہیں ڈھونڈ سکے۔ آؤ ایک آسان قدم سے شروع کریں!",
        "followups": ["کیا تم ضرب یا فیصد سیکھنا چاہتے ہو؟"],
    },
}


def no_notes_response(language: Language) -> TutorResponse:
    canned = _NO_NOTES.get(language, _NO_NOTES["en"])
    return TutorResponse(
        intent="encourage",
        explanation_kid=canned["explanation_kid"],
        followups=list(canned["followups"]),
    )


class TutorService:
    """Answer a child's tutoring request from the retrieved notes."""

    def __init__(
        self,
        retriever: HybridRetriever,
        completer: Completer | None = None,
        top_k: int = 6,
    ) -> None:
        self.retriever = retriever
        self.completer = completer
        self.top_k = top_k

    def respond(self, request: TutorRequest) -> TutorResponse:
        query = request.input.strip() or DEFAULT_QUERY
        try:
            chunks = self.retriever.search(query, request.subject, self.top_k)
        except StoreError as exc:
            logger.error("Search failed for subject %s: %s", request.subject, exc)
            chunks = []
        if not chunks:
            return no_notes_response(request.language)

        if self.completer is not None:
            try:
                return TutorResponse.model_validate(dict(self.completer(chunks, request)))
            except ValidationError as exc:
                logger.warning("Completer returned an unusable payload; using fallback: %s", exc)
            except Exception as exc:  # completer is opaque; any failure means fallback
                logger.warning("Completer failed; using fallback: %s", exc)
        return fallback_from_chunks(chunks, request.language)


__all__ = ["Completer", "TutorService", "no_notes_response", "DEFAULT_QUERY"]
