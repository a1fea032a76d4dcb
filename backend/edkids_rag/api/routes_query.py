"""Search and tutoring API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from edkids_rag.api.dependencies import get_retriever, get_tutor_service
from edkids_rag.core.errors import SearchBackendError
from edkids_rag.core.metrics import REQUEST_COUNT
from edkids_rag.models.dto import ChunkResult, SearchRequest, SearchResponse, TutorRequest, TutorResponse
from edkids_rag.retrieval import HybridRetriever
from edkids_rag.tutor.service import TutorService

router = APIRouter()


@router.post("/search", response_model=SearchResponse, summary="Hybrid search over a subject's notes")
def run_search(
    request: SearchRequest,
    retriever: HybridRetriever = Depends(get_retriever),
) -> SearchResponse:
    try:
        chunks = retriever.search(request.query, request.subject, request.k)
    except SearchBackendError as exc:
        REQUEST_COUNT.labels(endpoint="search", status="503").inc()
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    REQUEST_COUNT.labels(endpoint="search", status="200").inc()
    return SearchResponse(results=[ChunkResult(**chunk.to_dict()) for chunk in chunks])


@router.post("/tutor", response_model=TutorResponse, summary="Answer a tutoring request from the notes")
def run_tutor(
    request: TutorRequest,
    service: TutorService = Depends(get_tutor_service),
) -> TutorResponse:
    response = service.respond(request)
    REQUEST_COUNT.labels(endpoint="tutor", status="200").inc()
    return response
