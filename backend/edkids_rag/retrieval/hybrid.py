"""Hybrid search utilities.

Two relevance signals are computed per candidate chunk, cosine similarity
against the query embedding and BM25 over the subject's chunks, and merged
with weighted reciprocal rank fusion. A chunk that matches neither signal is
dropped rather than ranked last.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from rank_bm25 import BM25Plus

from edkids_rag.models.entities import Candidate, RetrievedChunk
from edkids_rag.utils.text import tokenize

DEFAULT_RRF_K = 60.0


@dataclass(slots=True)
class RankedItem:
    identifier: str
    score: float


def reciprocal_rank_fusion(
    results: Sequence[Sequence[Tuple[str, float]]],
    weights: Sequence[float] | None = None,
    k: float = DEFAULT_RRF_K,
) -> list[RankedItem]:
    """Combine rankings using (optionally weighted) reciprocal rank fusion."""
    scores: dict[str, float] = {}
    for list_idx, hits in enumerate(results):
        weight = weights[list_idx] if weights is not None else 1.0
        for rank, (chunk_id, _) in enumerate(hits, start=1):
            scores[chunk_id] = scores.get(chunk_id, 0.0) + weight / (k + rank)
    fused = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return [RankedItem(identifier=chunk_id, score=score) for chunk_id, score in fused]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float | None:
    """Cosine similarity, or ``None`` when the vectors are not comparable."""
    if not a or len(a) != len(b):
        return None
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def bm25_rank(query: str, documents: Sequence[Tuple[str, str]]) -> list[Tuple[str, float]]:
    """BM25 scores for documents sharing at least one token with ``query``.

    The whole document list is the BM25 corpus so term rarity is measured
    across the subject; only matching documents are returned, in input order.
    """
    query_tokens = tokenize(query)
    if not query_tokens or not documents:
        return []
    query_terms = set(query_tokens)
    corpus_tokens = [tokenize(text) for _, text in documents]
    matched = [idx for idx, tokens in enumerate(corpus_tokens) if query_terms.intersection(tokens)]
    if not matched:
        return []
    model = BM25Plus(corpus_tokens)
    scores = model.get_scores(query_tokens)
    return [(documents[idx][0], float(scores[idx])) for idx in matched]


def rank_candidates(
    candidates: Sequence[Candidate],
    query_text: str,
    query_vector: Sequence[float] | None,
    k: int,
    vector_weight: float = 1.0,
    lexical_weight: float = 1.0,
    min_vector_score: float = 0.0,
    rrf_k: float = DEFAULT_RRF_K,
) -> list[RetrievedChunk]:
    """Rank ``candidates`` for a query and return at most ``k`` of them."""
    if k <= 0 or not candidates:
        return []
    by_id = {candidate.chunk_id: candidate for candidate in candidates}

    def tie_break(chunk_id: str) -> tuple[int, str]:
        return by_id[chunk_id].chunk_index, chunk_id

    vec_scores: dict[str, float] = {}
    if query_vector:
        for candidate in candidates:
            if candidate.embedding is None:
                continue
            score = cosine_similarity(query_vector, candidate.embedding)
            if score is not None:
                vec_scores[candidate.chunk_id] = score
    vector_hits = sorted(
        ((chunk_id, score) for chunk_id, score in vec_scores.items() if score > min_vector_score),
        key=lambda item: (-item[1], *tie_break(item[0])),
    )

    fts_scores = dict(bm25_rank(query_text, [(c.chunk_id, c.content) for c in candidates]))
    lexical_hits = sorted(fts_scores.items(), key=lambda item: (-item[1], *tie_break(item[0])))

    fused = reciprocal_rank_fusion(
        [vector_hits, lexical_hits],
        weights=[vector_weight, lexical_weight],
        k=rrf_k,
    )
    ranked = [
        RetrievedChunk(
            chunk_id=item.identifier,
            document_id=by_id[item.identifier].document_id,
            subject=by_id[item.identifier].subject,
            topic_slug=by_id[item.identifier].topic_slug,
            content=by_id[item.identifier].content,
            chunk_index=by_id[item.identifier].chunk_index,
            vec_score=vec_scores.get(item.identifier),
            fts_score=fts_scores.get(item.identifier),
            final_score=item.score,
        )
        for item in fused
    ]
    ranked.sort(key=lambda chunk: (-chunk.final_score, chunk.chunk_index, chunk.chunk_id))
    return ranked[:k]


__all__ = [
    "RankedItem",
    "reciprocal_rank_fusion",
    "cosine_similarity",
    "bm25_rank",
    "rank_candidates",
]
