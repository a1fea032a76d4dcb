"""Deterministic quiz and flashcard extraction from retrieved notes.

Used when the generative completion step is unavailable. Every function here
is pure and returns well-formed (possibly empty) output for any input text.
"""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

from edkids_rag.models.dto import Flashcard, Language, QuizItem, TutorResponse

MAX_FLASHCARDS = 6
MAX_QUIZ_ITEMS = 5

_QA_RE = re.compile(r"Q:\s*(.+?)\s*A:\s*(.+?)(?:\n|$)", re.IGNORECASE | re.DOTALL)
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_QUESTION_END_RE = re.compile(r"[?]\s*$")
_REMAINDER_RE = re.compile(r"=.*$")
_PERCENT_OF_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%\s*of\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_CENTS = Decimal("0.01")

_CANNED: dict[str, dict[str, Any]] = {
    "en": {
        "explanation_kid": (
            "Let’s learn it simply: Percent means out of 100. "
            "For example, 10% means 10 out of every 100."
        ),
        "hints": ["10% = divide by 10.", "5% is half of 10%; 1% = divide by 100."],
        "followups": ["Try more examples?", "Want a tiny puzzle?"],
    },
    "ur": {
        "explanation_kid": "چلو آسان طریقے سے سمجھیں: فیصد کا مطلب سو میں سے ہے۔ مثال: 10% یعنی ہر سو میں دس۔",
        "hints": ["10% کے لیے عدد کو 10 پر تقسیم کریں۔", "5% = 10% کا آدھا؛ 1% = 100 پر تقسیم۔"],
        "followups": ["مزید مثالیں آزمائیں؟", "ننھی سی پزل کھیلیں؟"],
    },
}


def extract_flashcards(text: str, limit: int = MAX_FLASHCARDS) -> list[Flashcard]:
    """Collect ``Q: ... A: ...`` pairs in order of appearance."""
    cards: list[Flashcard] = []
    for match in _QA_RE.finditer(text):
        if len(cards) >= limit:
            break
        cards.append(Flashcard(front=match.group(1).strip(), back=match.group(2).strip()))
    return cards


def percent_of_answer(question: str) -> str | None:
    """Solve the first ``<p>% of <n>`` in ``question``.

    >>> percent_of_answer("What is 20% of 50?")
    '10'
    >>> percent_of_answer("What is 33% of 50?")
    '16.50'
    """
    match = _PERCENT_OF_RE.search(question)
    if not match:
        return None
    answer = float(match.group(1)) / 100 * float(match.group(2))
    if not math.isfinite(answer):
        return None
    if answer.is_integer():
        return str(int(answer))
    return str(Decimal(answer).quantize(_CENTS, rounding=ROUND_HALF_UP))


def is_percent_question(line: str) -> bool:
    return bool(_QUESTION_END_RE.search(line)) and "% of" in line.lower()


def extract_percent_quiz(text: str, limit: int = MAX_QUIZ_ITEMS) -> list[QuizItem]:
    """Question lines such as ``What is 20% of 50?`` paired with computed answers."""
    quiz: list[QuizItem] = []
    for line in (part.strip() for part in _LINE_SPLIT_RE.split(text)):
        if len(quiz) >= limit:
            break
        if not is_percent_question(line):
            continue
        answer = percent_of_answer(_REMAINDER_RE.sub("", line))
        if answer is not None:
            quiz.append(QuizItem(q=line, a=answer))
    return quiz


def fallback_from_chunks(chunks: Iterable[Any], language: Language = "en") -> TutorResponse:
    """Build a tutor response from retrieved chunk text alone."""
    text = "\n\n".join(_chunk_content(chunk) for chunk in chunks)
    canned = _CANNED.get(language, _CANNED["en"])
    return TutorResponse(
        intent="explain",
        explanation_kid=canned["explanation_kid"],
        hints=list(canned["hints"]),
        quiz=extract_percent_quiz(text),
        flashcards=extract_flashcards(text),
        followups=list(canned["followups"]),
    )


def _chunk_content(chunk: Any) -> str:
    if isinstance(chunk, Mapping):
        return str(chunk.get("content") or "")
    return str(getattr(chunk, "content", "") or "")


__all__ = [
    "extract_flashcards",
    "extract_percent_quiz",
    "fallback_from_chunks",
    "is_percent_question",
    "percent_of_answer",
]
