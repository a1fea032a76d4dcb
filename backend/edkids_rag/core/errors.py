"""Exception hierarchy for store and pipeline failures."""

from __future__ import annotations


class EdKidsError(Exception):
    """Base class for errors raised by this package."""


class StoreError(EdKidsError):
    """A document store operation failed.

    ``operation`` names the store call that failed so callers can tell a
    failed create apart from a failed delete or insert.
    """

    operation = "store"

    def __init__(self, message: str, *, document_id: str | None = None) -> None:
        super().__init__(message)
        self.document_id = document_id

    def __str__(self) -> str:
        base = super().__str__()
        if self.document_id:
            return f"{self.operation} failed for {self.document_id}: {base}"
        return f"{self.operation} failed: {base}"


class DocumentCreateError(StoreError):
    operation = "create-document"


class ChunkDeleteError(StoreError):
    operation = "delete-chunks"


class ChunkInsertError(StoreError):
    operation = "insert-chunks"


class SearchBackendError(StoreError):
    operation = "search"


__all__ = [
    "EdKidsError",
    "StoreError",
    "DocumentCreateError",
    "ChunkDeleteError",
    "ChunkInsertError",
    "SearchBackendError",
]
