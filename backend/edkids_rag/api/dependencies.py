"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from edkids_rag.core.config import Settings, get_settings
from edkids_rag.db.sqlite import SQLiteDatabase
from edkids_rag.db.store import SQLiteDocumentStore
from edkids_rag.ingest.embeddings import EmbeddingClient, build_embedding_client
from edkids_rag.ingest.pipeline import IngestPipeline
from edkids_rag.retrieval import HybridRetriever
from edkids_rag.tutor.service import TutorService

_DB: SQLiteDatabase | None = None
_STORE: SQLiteDocumentStore | None = None
_EMBEDDER: EmbeddingClient | None = None
_PIPELINE: IngestPipeline | None = None
_RETRIEVER: HybridRetriever | None = None
_TUTOR: TutorService | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        settings = get_app_settings()
        db = SQLiteDatabase(settings.db_path)
        db.ensure_schema()
        _DB = db
    return _DB


def get_document_store() -> SQLiteDocumentStore:
    global _STORE
    if _STORE is None:
        settings = get_app_settings()
        _STORE = SQLiteDocumentStore(
            get_database(),
            vector_weight=settings.vector_weight,
            lexical_weight=settings.lexical_weight,
            min_vector_score=settings.vector_score_floor,
            rrf_k=settings.rrf_k,
        )
    return _STORE


def get_embedding_client() -> EmbeddingClient:
    global _EMBEDDER
    if _EMBEDDER is None:
        _EMBEDDER = build_embedding_client(get_app_settings())
    return _EMBEDDER


def get_ingest_pipeline() -> IngestPipeline:
    global _PIPELINE
    if _PIPELINE is None:
        settings = get_app_settings()
        _PIPELINE = IngestPipeline(
            store=get_document_store(),
            embedder=get_embedding_client(),
            max_chars=settings.chunk_max_chars,
            source_suffixes=settings.source_suffixes,
        )
    return _PIPELINE


def get_retriever() -> HybridRetriever:
    global _RETRIEVER
    if _RETRIEVER is None:
        _RETRIEVER = HybridRetriever(store=get_document_store(), embedder=get_embedding_client())
    return _RETRIEVER


def get_tutor_service() -> TutorService:
    global _TUTOR
    if _TUTOR is None:
        _TUTOR = TutorService(retriever=get_retriever(), top_k=get_app_settings().tutor_top_k)
    return _TUTOR


__all__ = [
    "get_app_settings",
    "get_database",
    "get_document_store",
    "get_embedding_client",
    "get_ingest_pipeline",
    "get_retriever",
    "get_tutor_service",
]
