"""Ingest API routes."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends

from edkids_rag.api.dependencies import get_app_settings, get_ingest_pipeline
from edkids_rag.core.config import Settings
from edkids_rag.core.metrics import REQUEST_COUNT
from edkids_rag.ingest.pipeline import IngestPipeline
from edkids_rag.models.dto import IngestRequest, IngestResponse

router = APIRouter()


@router.post("", response_model=IngestResponse, summary="Ingest the knowledge-base folder")
def trigger_ingest(
    request: IngestRequest,
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
    settings: Settings = Depends(get_app_settings),
) -> IngestResponse:
    root = Path(request.root).expanduser() if request.root else settings.kb_root
    report = pipeline.ingest_corpus(root)
    REQUEST_COUNT.labels(endpoint="ingest", status="200").inc()
    return IngestResponse(**report.to_dict())
