"""CLI entrypoint for EdKids RAG."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

from edkids_rag.core.config import Settings
from edkids_rag.core.logging import configure_logging
from edkids_rag.db.sqlite import SQLiteDatabase
from edkids_rag.db.store import SQLiteDocumentStore
from edkids_rag.ingest.embeddings import build_embedding_client
from edkids_rag.ingest.pipeline import IngestPipeline

app = typer.Typer(name="edkids", help="EdKids RAG command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("EDK_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def ingest(
    root: Optional[Path] = typer.Argument(None, help="Corpus root holding one folder per subject"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to a YAML config file"),
    strict: bool = typer.Option(False, "--strict", help="Exit non-zero if any document failed"),
) -> None:
    """Chunk, embed and store every file under the corpus root."""
    configure_logging()
    settings = Settings.from_yaml(config)
    db = SQLiteDatabase(settings.db_path)
    db.ensure_schema()
    store = SQLiteDocumentStore(db)
    pipeline = IngestPipeline(
        store=store,
        embedder=build_embedding_client(settings),
        max_chars=settings.chunk_max_chars,
        source_suffixes=settings.source_suffixes,
    )
    try:
        report = pipeline.ingest_corpus(root or settings.kb_root)
    finally:
        db.close()
    typer.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    if strict and not report.ok:
        raise typer.Exit(code=1)


@app.command()
def search(
    q: str = typer.Argument(..., help="Query text"),
    subject: str = typer.Option(..., "--subject", help="Subject to search"),
    k: int = typer.Option(6, "--k", help="Number of results to return"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Run a hybrid search against a running server."""
    resp = _request("POST", "/search", host=host, json={"query": q, "subject": subject, "k": k})
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command()
def tutor(
    text: str = typer.Argument("", help="What the child said"),
    subject: str = typer.Option(..., "--subject", help="Subject to tutor"),
    language: str = typer.Option("en", "--language", help="en or ur"),
    grade: str = typer.Option("3", "--grade", help="K or 1-5"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask the tutor endpoint of a running server."""
    payload = {"subject": subject, "language": language, "grade": grade, "input": text}
    resp = _request("POST", "/tutor", host=host, json=payload)
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    app()
