"""Ingest pipeline orchestration."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Iterable, Sequence

from edkids_rag.core.errors import StoreError
from edkids_rag.core.logging import get_logger, log_context
from edkids_rag.core.metrics import CHUNKS_INSERTED, INGEST_DURATION
from edkids_rag.db.store import DocumentStore
from edkids_rag.ingest.chunker import DEFAULT_MAX_CHARS, chunk_text
from edkids_rag.ingest.embeddings import EmbeddingClient, Vector
from edkids_rag.ingest.types import IngestReport, IngestResult
from edkids_rag.models.entities import ChunkRow
from edkids_rag.utils.text import derive_topic

logger = get_logger(__name__)

DEFAULT_SUFFIXES = (".md", ".txt")


class IngestPipeline:
    """Coordinate chunking, embeddings, and persistence."""

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingClient,
        max_chars: int = DEFAULT_MAX_CHARS,
        source_suffixes: Sequence[str] = DEFAULT_SUFFIXES,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.max_chars = max_chars
        self.source_suffixes = tuple(suffix.lower() for suffix in source_suffixes)
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def ingest(self, subject: str, text: str, source_name: str) -> int:
        """Replace the chunks of ``source_name`` under ``subject``; return how many were written.

        Store failures propagate as :class:`StoreError`; embedding failures only
        leave the chunks without vectors.
        """
        topic_slug, title = derive_topic(source_name)
        chunks = chunk_text(text, self.max_chars)
        if not chunks:
            logger.info("No chunks for %s/%s; skipping", subject, topic_slug)
            return 0

        start_time = time.perf_counter()
        with self._lock_for(subject, topic_slug):
            embeddings = self.embedder.embed_batch(chunks)
            rows = [
                ChunkRow(
                    chunk_index=idx,
                    content=content,
                    embedding=embedding.values if isinstance(embedding, Vector) else None,
                )
                for idx, (content, embedding) in enumerate(zip(chunks, embeddings))
            ]
            document_id = self.store.upsert_document(subject, topic_slug, title)
            inserted = self.store.replace_chunks(document_id, rows)

        INGEST_DURATION.labels(subject=subject).observe(time.perf_counter() - start_time)
        CHUNKS_INSERTED.labels(subject=subject).inc(inserted)
        logger.info(
            "Ingested %s/%s: %s chunks",
            subject,
            topic_slug,
            inserted,
            extra=log_context(
                document_id=document_id,
                vectors=sum(1 for row in rows if row.embedding is not None),
            ),
        )
        return inserted

    def ingest_file(self, subject: str, path: Path) -> IngestResult:
        """Ingest one file, reporting failures instead of raising them."""
        try:
            text = path.read_text(encoding="utf-8")
            inserted = self.ingest(subject, text, path.name)
        except (OSError, UnicodeDecodeError, StoreError) as exc:
            logger.exception("Failed to ingest %s: %s", path, exc)
            return IngestResult(subject=subject, path=path, status="error", detail=str(exc))
        status = "processed" if inserted else "skipped"
        return IngestResult(subject=subject, path=path, status=status, chunks=inserted)

    def ingest_corpus(self, root: Path) -> IngestReport:
        """Ingest ``root/<subject>/<file>`` for every subject directory under ``root``."""
        report = IngestReport()
        root = Path(root).expanduser()
        if not root.is_dir():
            logger.info("No corpus folder at %s; nothing to ingest", root)
            return report

        subjects = sorted(path for path in root.iterdir() if path.is_dir())
        if not subjects:
            logger.info("No subjects under %s; nothing to ingest", root)
            return report

        for subject_dir in subjects:
            paths = list(self._list_sources(subject_dir))
            logger.info("Ingesting %s files for subject %s", len(paths), subject_dir.name)
            claimed: dict[str, Path] = {}
            for path in paths:
                topic_slug, _ = derive_topic(path.name)
                owner = claimed.setdefault(topic_slug, path)
                if owner != path:
                    detail = f"topic slug {topic_slug!r} already taken by {owner.name}"
                    logger.error("Skipping %s: %s", path, detail)
                    report.add(IngestResult(subject=subject_dir.name, path=path, status="error", detail=detail))
                    continue
                report.add(self.ingest_file(subject_dir.name, path))
        logger.info(
            "Done ingesting KB. Inserted %s chunks.",
            report.stats.chunks,
            extra=log_context(stats=report.stats.to_dict()),
        )
        return report

    # Internal helpers -------------------------------------------------

    def _list_sources(self, subject_dir: Path) -> Iterable[Path]:
        for path in sorted(subject_dir.iterdir()):
            if path.is_file() and path.suffix.lower() in self.source_suffixes:
                yield path

    def _lock_for(self, subject: str, topic_slug: str) -> threading.Lock:
        key = (subject, topic_slug)
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


__all__ = ["IngestPipeline"]
