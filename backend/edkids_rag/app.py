"""FastAPI application setup for EdKids RAG."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from edkids_rag.api.dependencies import (
    get_app_settings,
    get_database,
    get_embedding_client,
    get_ingest_pipeline,
    get_tutor_service,
)
from edkids_rag.api.routes_admin import router as admin_router
from edkids_rag.api.routes_ingest import router as ingest_router
from edkids_rag.api.routes_query import router as query_router
from edkids_rag.core.logging import configure_logging

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_database()
    get_embedding_client()
    get_ingest_pipeline()
    get_tutor_service()
    yield


app = FastAPI(
    title="EdKids RAG",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ingest_router, prefix="/ingest", tags=["ingest"])
app.include_router(query_router, prefix="", tags=["query"])
app.include_router(admin_router, prefix="", tags=["admin"])


