"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "edk_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "status"),
    registry=REGISTRY,
)

SEARCH_LATENCY = Histogram(
    "edk_search_latency_seconds",
    "Latency of hybrid searches",
    labelnames=("subject",),
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "edk_ingest_duration_seconds",
    "Per-document ingest duration",
    labelnames=("subject",),
    registry=REGISTRY,
)

CHUNKS_INSERTED = Counter(
    "edk_chunks_inserted_total",
    "Chunks written by the ingest pipeline",
    labelnames=("subject",),
    registry=REGISTRY,
)

EMBEDDING_FAILURES = Counter(
    "edk_embedding_unavailable_total",
    "Embedding requests that produced no vectors",
    labelnames=("kind",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "SEARCH_LATENCY",
    "INGEST_DURATION",
    "CHUNKS_INSERTED",
    "EMBEDDING_FAILURES",
    "metrics_response",
]
