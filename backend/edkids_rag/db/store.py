"""Document store: persistence boundary for documents and chunks."""

from __future__ import annotations

import sqlite3
import time
import uuid
from datetime import datetime, timezone
from typing import Protocol, Sequence

from edkids_rag.core.errors import (
    ChunkDeleteError,
    ChunkInsertError,
    DocumentCreateError,
    SearchBackendError,
)
from edkids_rag.core.logging import get_logger
from edkids_rag.db.sqlite import SQLiteDatabase
from edkids_rag.ingest.embeddings import vector_from_bytes, vector_to_bytes
from edkids_rag.models.entities import Candidate, Chunk, ChunkRow, Document, RetrievedChunk
from edkids_rag.retrieval.hybrid import DEFAULT_RRF_K, rank_candidates

logger = get_logger(__name__)


class DocumentStore(Protocol):
    def upsert_document(self, subject: str, topic_slug: str, title: str) -> str: ...

    def delete_chunks(self, document_id: str) -> int: ...

    def insert_chunks(self, document_id: str, rows: Sequence[ChunkRow]) -> int: ...

    def replace_chunks(self, document_id: str, rows: Sequence[ChunkRow]) -> int: ...

    def search(
        self,
        subject: str,
        query_text: str,
        query_vector: Sequence[float] | None,
        k: int,
    ) -> list[RetrievedChunk]: ...


class SQLiteDocumentStore:
    """SQLite-backed :class:`DocumentStore`.

    Search is a full scan of the subject's chunks ranked in Python, which is
    adequate for corpora of up to a few thousand chunks per subject.
    """

    def __init__(
        self,
        db: SQLiteDatabase,
        vector_weight: float = 1.0,
        lexical_weight: float = 1.0,
        min_vector_score: float = 0.0,
        rrf_k: float = DEFAULT_RRF_K,
    ) -> None:
        self.db = db
        self.vector_weight = vector_weight
        self.lexical_weight = lexical_weight
        self.min_vector_score = min_vector_score
        self.rrf_k = rrf_k

    # Writes -----------------------------------------------------------

    def upsert_document(self, subject: str, topic_slug: str, title: str) -> str:
        """Return the id of the (subject, topic_slug) document, creating it if needed."""
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    """
                    INSERT OR IGNORE INTO kb_docs (id, subject, topic_slug, title, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    [_row_id("doc"), subject, topic_slug, title, _now_ms()],
                )
                row = cursor.execute(
                    "SELECT id FROM kb_docs WHERE subject = ? AND topic_slug = ?",
                    [subject, topic_slug],
                ).fetchone()
        except sqlite3.Error as exc:
            raise DocumentCreateError(f"{subject}/{topic_slug}: {exc}") from exc
        if row is None:
            raise DocumentCreateError(f"{subject}/{topic_slug}: row not found after insert")
        return row["id"]

    def delete_chunks(self, document_id: str) -> int:
        try:
            with self.db.transaction() as cursor:
                return self._delete(cursor, document_id)
        except sqlite3.Error as exc:
            raise ChunkDeleteError(str(exc), document_id=document_id) from exc

    def insert_chunks(self, document_id: str, rows: Sequence[ChunkRow]) -> int:
        try:
            with self.db.transaction() as cursor:
                return self._insert(cursor, document_id, rows)
        except sqlite3.Error as exc:
            raise ChunkInsertError(str(exc), document_id=document_id) from exc

    def replace_chunks(self, document_id: str, rows: Sequence[ChunkRow]) -> int:
        """Swap a document's chunk set for ``rows`` in one transaction.

        On failure the previous chunk set is left untouched.
        """
        stage = "delete"
        try:
            with self.db.transaction() as cursor:
                removed = self._delete(cursor, document_id)
                stage = "insert"
                inserted = self._insert(cursor, document_id, rows)
        except sqlite3.Error as exc:
            error_cls = ChunkDeleteError if stage == "delete" else ChunkInsertError
            raise error_cls(str(exc), document_id=document_id) from exc
        logger.debug("Replaced %s chunks with %s for %s", removed, inserted, document_id)
        return inserted

    # Reads ------------------------------------------------------------

    def get_document(self, subject: str, topic_slug: str) -> Document | None:
        rows = self.db.query(
            "SELECT id, subject, topic_slug, title, created_at FROM kb_docs WHERE subject = ? AND topic_slug = ?",
            [subject, topic_slug],
        )
        if not rows:
            return None
        row = rows[0]
        return Document(
            id=row["id"],
            subject=row["subject"],
            topic_slug=row["topic_slug"],
            title=row["title"],
            created_at=_ms_to_datetime(row["created_at"]),
        )

    def count_documents(self, subject: str | None = None) -> int:
        if subject is None:
            rows = self.db.query("SELECT COUNT(*) AS count FROM kb_docs")
        else:
            rows = self.db.query("SELECT COUNT(*) AS count FROM kb_docs WHERE subject = ?", [subject])
        return int(rows[0]["count"])

    def count_chunks(self, document_id: str) -> int:
        rows = self.db.query("SELECT COUNT(*) AS count FROM kb_chunks WHERE doc_id = ?", [document_id])
        return int(rows[0]["count"])

    def list_chunks(self, document_id: str) -> list[Chunk]:
        rows = self.db.query(
            """
            SELECT id, doc_id, chunk_index, content, embedding, created_at
            FROM kb_chunks WHERE doc_id = ? ORDER BY chunk_index ASC
            """,
            [document_id],
        )
        return [
            Chunk(
                id=row["id"],
                document_id=row["doc_id"],
                chunk_index=row["chunk_index"],
                content=row["content"],
                embedding=vector_from_bytes(row["embedding"]) if row["embedding"] is not None else None,
                created_at=_ms_to_datetime(row["created_at"]),
            )
            for row in rows
        ]

    def search(
        self,
        subject: str,
        query_text: str,
        query_vector: Sequence[float] | None,
        k: int,
    ) -> list[RetrievedChunk]:
        try:
            candidates = self._load_candidates(subject)
        except sqlite3.Error as exc:
            raise SearchBackendError(f"{subject}: {exc}") from exc
        return rank_candidates(
            candidates,
            query_text=query_text,
            query_vector=query_vector,
            k=k,
            vector_weight=self.vector_weight,
            lexical_weight=self.lexical_weight,
            min_vector_score=self.min_vector_score,
            rrf_k=self.rrf_k,
        )

    # Internal helpers -------------------------------------------------

    def _load_candidates(self, subject: str) -> list[Candidate]:
        rows = self.db.query(
            """
            SELECT
              kb_chunks.id AS chunk_id,
              kb_chunks.doc_id,
              kb_chunks.chunk_index,
              kb_chunks.content,
              kb_chunks.embedding,
              kb_docs.subject,
              kb_docs.topic_slug
            FROM kb_chunks
            JOIN kb_docs ON kb_docs.id = kb_chunks.doc_id
            WHERE kb_docs.subject = ?
            ORDER BY kb_docs.topic_slug ASC, kb_chunks.chunk_index ASC
            """,
            [subject],
        )
        return [
            Candidate(
                chunk_id=row["chunk_id"],
                document_id=row["doc_id"],
                subject=row["subject"],
                topic_slug=row["topic_slug"],
                chunk_index=row["chunk_index"],
                content=row["content"],
                embedding=vector_from_bytes(row["embedding"]) if row["embedding"] is not None else None,
            )
            for row in rows
        ]

    @staticmethod
    def _delete(cursor: sqlite3.Cursor, document_id: str) -> int:
        cursor.execute("DELETE FROM kb_chunks WHERE doc_id = ?", [document_id])
        return cursor.rowcount

    @staticmethod
    def _insert(cursor: sqlite3.Cursor, document_id: str, rows: Sequence[ChunkRow]) -> int:
        now = _now_ms()
        cursor.executemany(
            """
            INSERT INTO kb_chunks (id, doc_id, chunk_index, content, embedding, dim, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    _row_id("chk"),
                    document_id,
                    row.chunk_index,
                    row.content,
                    vector_to_bytes(row.embedding) if row.embedding is not None else None,
                    len(row.embedding) if row.embedding is not None else None,
                    now,
                )
                for row in rows
            ],
        )
        return len(rows)


def _row_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _ms_to_datetime(value: int) -> datetime:
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


__all__ = ["DocumentStore", "SQLiteDocumentStore"]
