"""FastAPI application exposing ingestion and search over one in-memory index."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from docrank.config import AppConfig, Services, build_services
from docrank.index.indexer import IngestionError
from docrank.models import SearchRequest

LOGGER = logging.getLogger(__name__)

MAX_RESULTS_LIMIT = 50

app = FastAPI(title="docrank", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_services: Services | None = None
_services_lock = threading.Lock()


def get_services() -> Services:
    """Lazily build the process-wide service bundle."""
    global _services
    with _services_lock:
        if _services is None:
            _services = build_services(AppConfig())
        return _services


def reset_services() -> None:
    global _services
    with _services_lock:
        _services = None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchPayload(_CamelModel):
    query: str = ""
    semantic_search: bool = False
    keyword_search: bool = False
    fuzzy_search: bool = False
    source: str | None = None
    version: str | None = None
    category: str | None = None
    tags: List[str] | None = None
    min_relevance_score: float = 0.0
    max_results: int = 10
    include_code_snippets: bool = True


class IngestPayload(_CamelModel):
    source: str
    content: str | None = None
    url: str | None = None
    version: str | None = None


class UpdatePayload(_CamelModel):
    sources: List[str] | None = None


class ClearCachePayload(_CamelModel):
    clear_index: bool = False


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/search")
async def search_documents(
    payload: SearchPayload, services: Services = Depends(get_services)
) -> dict[str, Any]:
    request = SearchRequest.from_dict(payload.model_dump())
    request.max_results = max(1, min(request.max_results, MAX_RESULTS_LIMIT))
    result = services.engine.search(request)
    return result.to_dict(include_code_snippets=request.include_code_snippets)


@app.post("/ingest")
async def ingest_documents(
    payload: IngestPayload, services: Services = Depends(get_services)
) -> dict[str, Any]:
    source = payload.source.strip()
    if not source:
        raise HTTPException(status_code=400, detail="Source is required")
    raw = payload.content if payload.content else payload.url
    if not raw or not raw.strip():
        raise HTTPException(status_code=400, detail="Either content or url must be provided")

    try:
        chunks = await asyncio.to_thread(
            services.indexer.ingest, raw, source, payload.url, version=payload.version
        )
    except IngestionError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return {"status": "ok", "count": len(chunks), "ids": [chunk.id for chunk in chunks]}


@app.get("/suggestions")
async def suggestions(
    q: str, limit: int = 5, services: Services = Depends(get_services)
) -> dict[str, List[str]]:
    return {"suggestions": services.engine.suggestions(q, max(1, min(limit, MAX_RESULTS_LIMIT)))}


@app.get("/documents/{doc_id}")
async def get_document(doc_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    chunk = services.index.get_by_id(doc_id)
    if chunk is None:
        raise HTTPException(status_code=404, detail=f"Document with ID {doc_id} not found")
    return chunk.to_dict()


@app.get("/documents/{doc_id}/similar")
async def similar_documents(
    doc_id: str, limit: int = 5, services: Services = Depends(get_services)
) -> dict[str, Any]:
    if services.index.get_by_id(doc_id) is None:
        raise HTTPException(status_code=404, detail=f"Document with ID {doc_id} not found")
    similar = services.engine.find_similar(doc_id, max(1, min(limit, MAX_RESULTS_LIMIT)))
    return {"documentId": doc_id, "similarDocuments": [item.to_dict() for item in similar]}


@app.get("/stats")
async def stats(services: Services = Depends(get_services)) -> dict[str, Any]:
    return {
        "search": services.engine.stats(),
        "index": services.index.stats(),
        "embeddingsCache": services.embedder.cache_stats(),
    }


@app.get("/status")
async def status(services: Services = Depends(get_services)) -> dict[str, Any]:
    return services.status()


@app.get("/sources")
async def list_sources(services: Services = Depends(get_services)) -> dict[str, Any]:
    sources = services.list_sources()
    return {"sources": sources, "totalSources": len(sources)}


@app.post("/sources/update")
async def update_sources(
    payload: UpdatePayload | None = None, services: Services = Depends(get_services)
) -> dict[str, Any]:
    names = payload.sources if payload else None
    try:
        selected = services.select_sources(names)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    stats = await asyncio.to_thread(services.update_sources, list(selected))
    return {"status": "completed", **stats.to_dict()}


@app.post("/cache/clear")
async def clear_cache(
    payload: ClearCachePayload | None = None, services: Services = Depends(get_services)
) -> dict[str, Any]:
    cleared = services.clear_cache(clear_index=payload.clear_index if payload else False)
    return {"status": "ok", **cleared}
