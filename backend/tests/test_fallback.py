"""Tests for deterministic fallback extraction."""

from __future__ import annotations

import pytest

from edkids_rag.tutor.fallback import (
    extract_flashcards,
    extract_percent_quiz,
    fallback_from_chunks,
    is_percent_question,
    percent_of_answer,
)
from fakes import make_chunk


@pytest.mark.parametrize(
    ("question", "answer"),
    [
        ("What is 20% of 50?", "10"),
        ("What is 33% of 50?", "16.50"),
        ("What is 12.5% of 3?", "0.38"),
        ("What is 0% of 9?", "0"),
        ("what is 50 % OF 30?", "15"),
        ("What is a half?", None),
    ],
)
def test_percent_of_answer(question: str, answer: str | None) -> None:
    assert percent_of_answer(question) == answer


def test_quiz_candidates_need_question_mark_and_percent_of() -> None:
    assert is_percent_question("What is 20% of 50?")
    assert is_percent_question("What is 20% OF 50 ?  ")
    assert not is_percent_question("What is red?")
    assert not is_percent_question("20% of 50 is 10.")


def test_percent_quiz_extraction() -> None:
    text = "\n".join(
        [
            "What is red?",
            "  What is 20% of 50?  ",
            "What is x% of the cake?",
            "25% of 8 = 2, so what is 25% of 8 = ?",
            "Say 10% of 90 out loud.",
        ]
    )
    quiz = extract_percent_quiz(text)
    assert [(item.q, item.a) for item in quiz] == [
        ("What is 20% of 50?", "10"),
        ("25% of 8 = 2, so what is 25% of 8 = ?", "2"),
    ]


def test_percent_quiz_is_capped() -> None:
    text = "\r\n".join(f"What is {pct}% of 200?" for pct in range(1, 10))
    quiz = extract_percent_quiz(text)
    assert len(quiz) == 5
    assert quiz[0].a == "2"
    assert quiz[-1].q == "What is 5% of 200?"


def test_flashcards_in_order_and_trimmed() -> None:
    cards = extract_flashcards("Q: What is 2+2? A: 4\nQ: Capital of France? A: Paris")
    assert [(card.front, card.back) for card in cards] == [
        ("What is 2+2?", "4"),
        ("Capital of France?", "Paris"),
    ]


def test_flashcards_case_insensitive_and_capped() -> None:
    text = "\n".join(f"q:  Question {idx}?   a:  Answer {idx}  " for idx in range(8))
    cards = extract_flashcards(text)
    assert len(cards) == 6
    assert cards[0].front == "Question 0?"
    assert cards[0].back == "Answer 0"


def test_no_patterns_yield_empty_lists() -> None:
    assert extract_flashcards("Plants need water.") == []
    assert extract_percent_quiz("Plants need water.") == []


def test_fallback_response_english() -> None:
    chunks = [
        make_chunk("Q: What is 10% of 70? A: 7"),
        make_chunk("What is 20% of 50?", chunk_index=1),
    ]
    response = fallback_from_chunks(chunks, "en")
    assert response.intent == "explain"
    assert response.explanation_kid.startswith("Let’s learn it simply")
    assert len(response.hints) == 2
    assert len(response.followups) == 2
    assert [(card.front, card.back) for card in response.flashcards] == [("What is 10% of 70?", "7")]
    assert [(item.q, item.a) for item in response.quiz] == [("What is 20% of 50?", "10")]


def test_fallback_accepts_mappings_and_urdu() -> None:
    response = fallback_from_chunks([{"content": "No patterns here."}, {"content": None}], "ur")
    assert response.intent == "explain"
    assert "فیصد" in response.explanation_kid
    assert response.quiz == []
    assert response.flashcards == []
    assert response.followups == ["مزید مثالیں آزمائیں؟", "ننھی سی پزل کھیلیں؟"]


def test_fallback_on_no_chunks() -> None:
    response = fallback_from_chunks([], "en")
    assert response.quiz == []
    assert response.flashcards == []


def test_overflowing_numbers_are_not_quizzed() -> None:
    huge = "9" * 400
    assert percent_of_answer(f"What is {huge}% of 5?") is None
    assert percent_of_answer(f"What is {huge}% of 0?") is None
    quiz = extract_percent_quiz(f"What is {huge}% of 5?\nWhat is 20% of 50?")
    assert [(item.q, item.a) for item in quiz] == [("What is 20% of 50?", "10")]


def test_fallback_survives_overflowing_numbers() -> None:
    response = fallback_from_chunks([{"content": "What is " + "1" * 320 + "% of 50?"}], "en")
    assert response.intent == "explain"
    assert response.quiz == []
