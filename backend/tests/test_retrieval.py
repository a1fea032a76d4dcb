"""Tests for hybrid ranking and the retriever."""

from __future__ import annotations

import pytest

from edkids_rag.core.errors import SearchBackendError
from edkids_rag.db.store import SQLiteDocumentStore
from edkids_rag.ingest.embeddings import EmbeddingClient
from edkids_rag.ingest.pipeline import IngestPipeline
from edkids_rag.models.entities import Candidate
from edkids_rag.retrieval import HybridRetriever, cosine_similarity, rank_candidates, reciprocal_rank_fusion
from fakes import BrokenSearchStore, FailingProvider


def _candidate(idx: int, content: str, embedding: list[float] | None = None) -> Candidate:
    return Candidate(
        chunk_id=f"chk_{idx}",
        document_id="doc_1",
        subject="math",
        topic_slug="notes",
        chunk_index=idx,
        content=content,
        embedding=embedding,
    )


CANDIDATES = [
    _candidate(0, "Percent means out of 100.", [1.0, 0.0, 0.0]),
    _candidate(1, "To find 10 percent divide by 10. Percent percent.", [0.8, 0.2, 0.0]),
    _candidate(2, "Multiplication is repeated addition.", [0.0, 1.0, 0.0]),
    _candidate(3, "Fractions have a numerator and a denominator.", None),
]


def test_reciprocal_rank_fusion_weights() -> None:
    fused = reciprocal_rank_fusion([[("a", 1.0), ("b", 0.5)], [("b", 3.0)]], weights=[1.0, 2.0], k=60)
    assert [item.identifier for item in fused] == ["b", "a"]
    assert fused[0].score == pytest.approx(1 / 62 + 2 / 61)


def test_cosine_similarity_edge_cases() -> None:
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) is None
    assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


def test_lexical_only_excludes_non_matching() -> None:
    results = rank_candidates(CANDIDATES, "percent", None, k=10)
    assert [result.chunk_id for result in results] == ["chk_1", "chk_0"]
    assert all(result.vec_score is None for result in results)
    assert all(result.fts_score is not None for result in results)


def test_vector_signal_adds_candidates() -> None:
    results = rank_candidates(CANDIDATES, "percent", [1.0, 0.0, 0.0], k=10)
    ids = [result.chunk_id for result in results]
    assert set(ids) == {"chk_0", "chk_1"}
    assert results[0].vec_score is not None

    results = rank_candidates(CANDIDATES, "addition", [0.0, 1.0, 0.0], k=10)
    assert results[0].chunk_id == "chk_2"
    # chk_1 is vector-relevant (cosine > 0) without any lexical match.
    assert "chk_1" in [result.chunk_id for result in results]
    assert "chk_3" not in [result.chunk_id for result in results]


def test_min_vector_score_filters_weak_matches() -> None:
    results = rank_candidates(CANDIDATES, "zebra", [0.0, 1.0, 0.0], k=10, min_vector_score=0.5)
    assert [result.chunk_id for result in results] == ["chk_2"]
    assert results[0].fts_score is None


def test_no_relevance_yields_empty() -> None:
    assert rank_candidates(CANDIDATES, "zebra", None, k=10) == []
    assert rank_candidates(CANDIDATES, "", None, k=10) == []
    assert rank_candidates(CANDIDATES, "percent", None, k=0) == []


def test_results_bounded_ordered_and_deterministic() -> None:
    candidates = [_candidate(idx, f"percent note {idx}", [1.0, float(idx)]) for idx in range(12)]
    first = rank_candidates(candidates, "percent note", [1.0, 0.5], k=5)
    second = rank_candidates(candidates, "percent note", [1.0, 0.5], k=5)
    assert len(first) == 5
    scores = [result.final_score for result in first]
    assert scores == sorted(scores, reverse=True)
    assert [result.chunk_id for result in first] == [result.chunk_id for result in second]


def test_ties_broken_by_chunk_index() -> None:
    candidates = [_candidate(idx, "same words here") for idx in (3, 1, 2)]
    results = rank_candidates(candidates, "words", None, k=3)
    assert [result.chunk_index for result in results] == [1, 2, 3]


def test_urdu_text_is_tokenized() -> None:
    candidates = [_candidate(0, "فیصد کا مطلب سو میں سے ہے"), _candidate(1, "ضرب")]
    results = rank_candidates(candidates, "فیصد", None, k=5)
    assert [result.chunk_id for result in results] == ["chk_0"]


def test_retriever_end_to_end(
    pipeline: IngestPipeline, store: SQLiteDocumentStore, hashed_embedder: EmbeddingClient, kb_root
) -> None:
    pipeline.ingest_corpus(kb_root)
    retriever = HybridRetriever(store=store, embedder=hashed_embedder)
    results = retriever.search("percent", "math", k=2)
    assert 0 < len(results) <= 2
    assert results[0].topic_slug == "percent-basics"
    assert results[0].vec_score is not None
    assert all(result.subject == "math" for result in results)
    assert retriever.search("percent", "math", k=2) == results


def test_retriever_absorbs_embedding_failure(pipeline: IngestPipeline, store: SQLiteDocumentStore, kb_root) -> None:
    pipeline.ingest_corpus(kb_root)
    retriever = HybridRetriever(store=store, embedder=EmbeddingClient(FailingProvider()))
    results = retriever.search("sunlight", "science", k=5)
    assert [result.topic_slug for result in results] == ["plants"]
    assert results[0].vec_score is None


def test_retriever_unknown_subject_is_empty(store: SQLiteDocumentStore, hashed_embedder: EmbeddingClient) -> None:
    assert HybridRetriever(store=store, embedder=hashed_embedder).search("anything", "islamiat", 4) == []


def test_retriever_propagates_store_failure(hashed_embedder: EmbeddingClient) -> None:
    retriever = HybridRetriever(store=BrokenSearchStore(), embedder=hashed_embedder)
    with pytest.raises(SearchBackendError):
        retriever.search("percent", "math", 3)
