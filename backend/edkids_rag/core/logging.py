"""Structured logging for EdKids RAG.

Call sites attach fields with :func:`log_context`; the JSON formatter emits
them as top-level keys and the text formatter appends them as ``key=value``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import orjson

_DEFAULT_LEVEL = os.environ.get("EDK_LOG_LEVEL", "INFO")
_DEFAULT_FORMAT = os.environ.get("EDK_LOG_FORMAT", "json")
_CONTEXT_PREFIX = "ctx_"


def log_context(**fields: Any) -> dict[str, Any]:
    """Build an ``extra=`` mapping for a log call."""
    return {f"{_CONTEXT_PREFIX}{key}": value for key, value in fields.items()}


def _context_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key[len(_CONTEXT_PREFIX):]: value
        for key, value in record.__dict__.items()
        if key.startswith(_CONTEXT_PREFIX)
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in _context_fields(record).items():
            payload.setdefault(key, value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _context_fields(record)
        if not fields:
            return line
        rendered = " ".join(f"{key}={value}" for key, value in fields.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{rendered}]{sep}{tail}"


def configure_logging(level: str | int = _DEFAULT_LEVEL, fmt: str = _DEFAULT_FORMAT) -> None:
    """Install a single stderr handler on the root logger."""
    logging.captureWarnings(True)
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(TextFormatter() if fmt == "text" else JsonFormatter())
    root.handlers = [handler]


def get_logger(name: str = "edkids_rag") -> logging.Logger:
    """Return a logger, configuring the root logger on first use."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "TextFormatter", "configure_logging", "get_logger", "log_context"]
