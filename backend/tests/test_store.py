"""Tests for the SQLite document store."""

from __future__ import annotations

import pytest

from edkids_rag.core.errors import ChunkInsertError, SearchBackendError, StoreError
from edkids_rag.db.sqlite import SQLiteDatabase
from edkids_rag.db.store import SQLiteDocumentStore
from edkids_rag.models.entities import ChunkRow


def _rows(*contents: str) -> list[ChunkRow]:
    return [ChunkRow(chunk_index=idx, content=content) for idx, content in enumerate(contents)]


def test_upsert_document_keeps_identity(store: SQLiteDocumentStore) -> None:
    first = store.upsert_document("math", "percent-basics", "percent basics")
    second = store.upsert_document("math", "percent-basics", "Percent Basics")
    other = store.upsert_document("science", "percent-basics", "percent basics")
    assert first == second
    assert other != first
    assert store.count_documents() == 2
    assert store.get_document("math", "percent-basics").title == "percent basics"


def test_get_document_missing(store: SQLiteDocumentStore) -> None:
    assert store.get_document("math", "nope") is None


def test_replace_chunks_swaps_the_set(store: SQLiteDocumentStore) -> None:
    document_id = store.upsert_document("math", "fractions", "fractions")
    store.replace_chunks(document_id, _rows("one", "two", "three"))
    store.replace_chunks(document_id, _rows("uno", "dos"))
    chunks = store.list_chunks(document_id)
    assert [chunk.content for chunk in chunks] == ["uno", "dos"]
    assert [chunk.chunk_index for chunk in chunks] == [0, 1]


def test_failed_replace_keeps_previous_chunks(store: SQLiteDocumentStore) -> None:
    document_id = store.upsert_document("math", "fractions", "fractions")
    store.replace_chunks(document_id, _rows("one", "two"))
    with pytest.raises(ChunkInsertError) as excinfo:
        store.replace_chunks(document_id, [ChunkRow(0, "new"), ChunkRow(0, "duplicate index")])
    assert "insert-chunks" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, Exception)
    assert [chunk.content for chunk in store.list_chunks(document_id)] == ["one", "two"]


def test_delete_and_insert_primitives(store: SQLiteDocumentStore) -> None:
    document_id = store.upsert_document("english", "nouns", "nouns")
    assert store.delete_chunks(document_id) == 0
    assert store.insert_chunks(document_id, _rows("a noun names a thing")) == 1
    assert store.count_chunks(document_id) == 1
    assert store.delete_chunks(document_id) == 1
    assert store.count_chunks(document_id) == 0


def test_empty_content_is_rejected(store: SQLiteDocumentStore) -> None:
    document_id = store.upsert_document("english", "nouns", "nouns")
    with pytest.raises(StoreError):
        store.insert_chunks(document_id, _rows(""))


def test_embeddings_round_trip(store: SQLiteDocumentStore) -> None:
    document_id = store.upsert_document("math", "vectors", "vectors")
    store.replace_chunks(document_id, [ChunkRow(0, "with vector", [0.5, 0.5]), ChunkRow(1, "without")])
    with_vector, without = store.list_chunks(document_id)
    assert with_vector.embedding == pytest.approx([0.5, 0.5])
    assert without.embedding is None


def test_search_is_scoped_to_subject(store: SQLiteDocumentStore) -> None:
    math_id = store.upsert_document("math", "percent", "percent")
    science_id = store.upsert_document("science", "percent", "percent")
    store.replace_chunks(math_id, _rows("percent means out of 100"))
    store.replace_chunks(science_id, _rows("percent of water in plants"))
    results = store.search("math", "percent", None, 5)
    assert [result.subject for result in results] == ["math"]
    assert results[0].topic_slug == "percent"


def test_search_failure_raises_backend_error(database: SQLiteDatabase, store: SQLiteDocumentStore) -> None:
    database.execute("DROP TABLE kb_chunks")
    with pytest.raises(SearchBackendError):
        store.search("math", "percent", None, 5)
