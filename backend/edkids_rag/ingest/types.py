"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(slots=True)
class IngestStats:
    """Aggregated ingest statistics."""

    processed: int = 0
    skipped: int = 0
    failed: int = 0
    chunks: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "chunks": self.chunks,
        }


@dataclass(slots=True)
class IngestResult:
    """Outcome for a single source file."""

    subject: str
    path: Path
    status: str
    chunks: int = 0
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "path": str(self.path),
            "status": self.status,
            "chunks": self.chunks,
            "detail": self.detail,
        }


@dataclass(slots=True)
class IngestReport:
    """Outcome of a corpus run."""

    stats: IngestStats = field(default_factory=IngestStats)
    results: list[IngestResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.stats.failed == 0

    def add(self, result: IngestResult) -> None:
        self.results.append(result)
        if result.status == "processed":
            self.stats.processed += 1
            self.stats.chunks += result.chunks
        elif result.status == "skipped":
            self.stats.skipped += 1
        elif result.status == "error":
            self.stats.failed += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "stats": self.stats.to_dict(),
            "results": [result.to_dict() for result in self.results],
        }


__all__ = ["IngestStats", "IngestResult", "IngestReport"]
