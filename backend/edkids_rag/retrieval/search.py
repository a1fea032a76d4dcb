"""Search orchestration."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from edkids_rag.core.logging import get_logger, log_context
from edkids_rag.core.metrics import SEARCH_LATENCY
from edkids_rag.ingest.embeddings import EmbeddingClient, Vector
from edkids_rag.models.entities import RetrievedChunk

if TYPE_CHECKING:
    from edkids_rag.db.store import DocumentStore

logger = get_logger(__name__)


class HybridRetriever:
    """Embed the query when possible, then run the store's hybrid ranking.

    An unavailable query embedding only removes the vector signal; a store
    failure propagates as :class:`~edkids_rag.core.errors.SearchBackendError`.
    """

    def __init__(self, store: DocumentStore, embedder: EmbeddingClient) -> None:
        self.store = store
        self.embedder = embedder

    def search(self, query: str, subject: str, k: int = 6) -> list[RetrievedChunk]:
        if k <= 0:
            return []
        start_time = time.perf_counter()
        embedded = self.embedder.embed_one(query)
        query_vector = embedded.values if isinstance(embedded, Vector) else None
        if query_vector is None:
            logger.debug("Query embedding unavailable (%s); lexical only", embedded.reason)
        results = self.store.search(subject, query, query_vector, k)[:k]
        SEARCH_LATENCY.labels(subject=subject).observe(time.perf_counter() - start_time)
        logger.info(
            "Search returned %s chunks",
            len(results),
            extra=log_context(subject=subject, k=k, vector=query_vector is not None),
        )
        return results


__all__ = ["HybridRetriever"]
