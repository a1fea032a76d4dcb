"""Test fixtures for EdKids RAG."""

from __future__ import annotations

import sys
from pathlib import Path
import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from edkids_rag.db.sqlite import SQLiteDatabase  # noqa: E402
from edkids_rag.db.store import SQLiteDocumentStore  # noqa: E402
from edkids_rag.ingest.embeddings import EmbeddingClient, HashedEmbeddingProvider  # noqa: E402
from edkids_rag.ingest.pipeline import IngestPipeline  # noqa: E402


def _reset_singletons() -> None:
    from edkids_rag.api import dependencies as deps
    from edkids_rag.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    if deps._DB is not None:
        deps._DB.close()
    deps._DB = None
    deps._STORE = None
    deps._EMBEDDER = None
    deps._PIPELINE = None
    deps._RETRIEVER = None
    deps._TUTOR = None


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("EDK_DB_PATH", str(tmp_path / "kb.db"))
    monkeypatch.setenv("EDK_EMBEDDING_BACKEND", "hashed")
    monkeypatch.delenv("EDK_CONFIG", raising=False)
    monkeypatch.delenv("EDK_OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    _reset_singletons()
    yield
    _reset_singletons()


@pytest.fixture
def database(tmp_path: Path) -> SQLiteDatabase:
    db = SQLiteDatabase(tmp_path / "store.db")
    db.ensure_schema()
    yield db
    db.close()


@pytest.fixture
def store(database: SQLiteDatabase) -> SQLiteDocumentStore:
    return SQLiteDocumentStore(database)


@pytest.fixture
def hashed_embedder() -> EmbeddingClient:
    return EmbeddingClient(HashedEmbeddingProvider(dim=64))


@pytest.fixture
def pipeline(store: SQLiteDocumentStore, hashed_embedder: EmbeddingClient) -> IngestPipeline:
    return IngestPipeline(store=store, embedder=hashed_embedder)


@pytest.fixture(scope="session")
def sample_text() -> str:
    return (
        "Percentages\n\n"
        "Percent means out of 100. 10% means 10 out of every 100.\n\n"
        "Q: What is 10% of 70? A: 7\n\n"
        "What is 20% of 50?"
    )


@pytest.fixture
def kb_root(tmp_path: Path, sample_text: str) -> Path:
    root = tmp_path / "kb"
    (root / "math").mkdir(parents=True)
    (root / "science").mkdir()
    (root / "math" / "percent_basics.md").write_text(sample_text, encoding="utf-8")
    (root / "math" / "times-tables.md").write_text(
        "Times tables\n\n3 x 4 = 12. Multiplication is repeated addition.",
        encoding="utf-8",
    )
    (root / "science" / "plants.md").write_text(
        "Plants need sunlight and water to grow.",
        encoding="utf-8",
    )
    return root
