"""Retrieval orchestration components."""

from .hybrid import bm25_rank, cosine_similarity, rank_candidates, reciprocal_rank_fusion
from .search import HybridRetriever

__all__ = [
    "HybridRetriever",
    "bm25_rank",
    "cosine_similarity",
    "rank_candidates",
    "reciprocal_rank_fusion",
]
