"""Embedding utilities.

The :class:`EmbeddingClient` is the only place that talks to an embedding
provider. It never raises: every input text gets either a :class:`Vector` or
an :class:`Unavailable` carrying the reason, and callers degrade to
lexical-only behaviour on the latter.
"""

from __future__ import annotations

import hashlib
import logging
import math
from array import array
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence, Union

import openai

from edkids_rag.core.config import Settings
from edkids_rag.core.metrics import EMBEDDING_FAILURES
from edkids_rag.utils.text import tokenize

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Vector:
    values: list[float]

    available = True

    @property
    def dim(self) -> int:
        return len(self.values)


@dataclass(slots=True)
class Unavailable:
    reason: str

    available = False


EmbeddingResult = Union[Vector, Unavailable]

NOT_CONFIGURED = Unavailable("embeddings not configured")


class EmbeddingProvider(Protocol):
    model: str

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Return one vector per text or raise."""


class HashedEmbeddingProvider:
    """Lightweight hashed embedding model with deterministic output."""

    def __init__(self, model: str = "hashed", dim: int = 384) -> None:
        self.model = model
        self.dim = dim

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for text in texts:
            vector = [0.0] * self.dim
            for token in tokenize(text):
                vector[_hash_token(token, self.dim)] += 1.0
            _normalize(vector)
            vectors.append(vector)
        return vectors


class OpenAIEmbeddingProvider:
    """Embedding provider backed by an OpenAI-compatible embeddings API."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str | None = None,
        timeout: float = 20.0,
    ) -> None:
        self.model = model
        client_kwargs: dict = {"api_key": api_key, "timeout": timeout, "max_retries": 0}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = openai.OpenAI(**client_kwargs)

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        response = self._client.embeddings.create(model=self.model, input=list(texts))
        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]


class EmbeddingClient:
    """Fail-soft adapter around an :class:`EmbeddingProvider`."""

    def __init__(self, provider: EmbeddingProvider | None = None) -> None:
        self.provider = provider

    @property
    def configured(self) -> bool:
        return self.provider is not None

    @property
    def model(self) -> str | None:
        return self.provider.model if self.provider is not None else None

    def embed_batch(self, texts: Iterable[str]) -> list[EmbeddingResult]:
        batch = list(texts)
        if not batch:
            return []
        if self.provider is None:
            return [NOT_CONFIGURED for _ in batch]
        try:
            raw = self.provider.embed(batch)
            if len(raw) != len(batch):
                return self._unavailable(
                    len(batch),
                    f"malformed response: expected {len(batch)} vectors, got {len(raw)}",
                    kind="malformed",
                )
            vectors = [[float(value) for value in vector] for vector in raw]
        except Exception as exc:  # provider errors never cross this boundary
            return self._unavailable(len(batch), f"{type(exc).__name__}: {exc}", kind="error")
        if any(not vector for vector in vectors):
            return self._unavailable(len(batch), "malformed response: empty vector", kind="malformed")
        return [Vector(values=vector) for vector in vectors]

    def embed_one(self, text: str) -> EmbeddingResult:
        return self.embed_batch([text])[0]

    def _unavailable(self, count: int, reason: str, kind: str) -> list[EmbeddingResult]:
        logger.warning("Embedding failed; continuing without vectors: %s", reason)
        EMBEDDING_FAILURES.labels(kind=kind).inc()
        marker = Unavailable(reason)
        return [marker for _ in range(count)]


def build_embedding_client(settings: Settings) -> EmbeddingClient:
    """Select the provider named by ``settings.embedding_backend``."""
    if not settings.embeddings_configured:
        logger.info("No embedding provider configured; searches will be lexical only")
        return EmbeddingClient(None)
    if settings.embedding_backend == "hashed":
        return EmbeddingClient(HashedEmbeddingProvider(dim=settings.embedding_dim))
    return EmbeddingClient(
        OpenAIEmbeddingProvider(
            api_key=settings.openai_api_key or "",
            model=settings.embedding_model,
            base_url=settings.openai_base_url,
            timeout=settings.embedding_timeout,
        )
    )


def vector_to_bytes(vector: Sequence[float]) -> bytes:
    return array("f", vector).tobytes()


def vector_from_bytes(payload: bytes) -> list[float]:
    floats = array("f")
    floats.frombytes(payload)
    return list(floats)


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "EmbeddingClient",
    "EmbeddingProvider",
    "EmbeddingResult",
    "HashedEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "Unavailable",
    "Vector",
    "NOT_CONFIGURED",
    "build_embedding_client",
    "vector_to_bytes",
    "vector_from_bytes",
]
