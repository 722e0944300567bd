"""
API route handlers for search, ask, rechunk and media management.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from lytt.api.models import (
    AskRequest,
    AskResponse,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    MediaInfo,
    MediaListResponse,
    RechunkOutcome,
    RechunkRequest,
    RechunkResponse,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SourceInfo,
)
from lytt.errors import LyttError
from lytt.ingestion.export import ExportFormat
from lytt.services import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_BY_KIND = {
    "not_found": 404,
    "no_stored_transcript": 404,
    "no_results": 404,
    "chunking_error": 422,
    "semantic_boundary_error": 422,
    "dimension_mismatch": 422,
    "model_mismatch": 422,
    "invalid_batch": 422,
    "embed_error": 502,
    "generation_error": 502,
    "storage_error": 500,
    "config_error": 500,
}

ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@contextmanager
def handle_errors(endpoint: str) -> Iterator[None]:
    """Translate engine errors to HTTP errors with a kind/message detail."""
    try:
        yield
    except LyttError as e:
        status = STATUS_BY_KIND.get(e.kind, 500)
        if status >= 500:
            logger.exception(f"Error in {endpoint} endpoint")
        raise HTTPException(status_code=status, detail=e.to_dict()) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error in {endpoint} endpoint")
        raise HTTPException(
            status_code=500,
            detail={"kind": "internal_error", "message": str(e)},
        ) from e


@router.post("/search", response_model=SearchResponse, responses=ERROR_RESPONSES)
def search(request: SearchRequest, services: Services = Depends(get_services)):
    """
    Semantic search across indexed transcripts.

    Returns chunks ranked by similarity; an empty list when nothing clears
    the threshold.
    """
    with handle_errors("search"):
        results = services.engine.search(
            request.query,
            limit=request.limit,
            min_score=request.min_score,
        )

    return SearchResponse(
        query=request.query,
        results=[SearchResult(**r.to_dict()) for r in results],
        total_results=len(results),
    )


@router.post("/ask", response_model=AskResponse, responses=ERROR_RESPONSES)
def ask(request: AskRequest, services: Services = Depends(get_services)):
    """
    Answer a question from indexed content, citing the chunks used.
    """
    with handle_errors("ask"):
        response = services.engine.ask(
            request.question,
            max_chunks=request.max_chunks,
            min_score=request.min_score,
        )

    return AskResponse(
        answer=response.answer,
        sources=[SourceInfo(**s.to_source_dict()) for s in response.sources],
    )


@router.post("/rechunk", response_model=RechunkResponse, responses=ERROR_RESPONSES)
def rechunk(request: RechunkRequest, services: Services = Depends(get_services)):
    """
    Re-derive chunks from stored transcripts.

    A single media item fails the request on error; "all" reports per-item outcomes.
    """
    with handle_errors("rechunk"):
        outcomes = services.pipeline.rechunk(request.media_id)

    return RechunkResponse(outcomes=[RechunkOutcome(**o.to_dict()) for o in outcomes])


@router.get("/media", response_model=MediaListResponse)
def list_media(services: Services = Depends(get_services)):
    """List indexed media, newest first."""
    with handle_errors("list_media"):
        media = services.list_media()

    return MediaListResponse(
        media=[MediaInfo(**m.to_dict()) for m in media],
        total=len(media),
    )


@router.get("/media/{media_id}", response_model=MediaInfo, responses=ERROR_RESPONSES)
def get_media(media_id: str, services: Services = Depends(get_services)):
    """Get one media item."""
    with handle_errors("get_media"):
        media = services.get_media(media_id)

    return MediaInfo(**media.to_dict())


@router.delete("/media/{media_id}", response_model=DeleteResponse, responses=ERROR_RESPONSES)
def delete_media(media_id: str, services: Services = Depends(get_services)):
    """Delete a media item with its transcript, chunks and embeddings."""
    with handle_errors("delete_media"):
        deleted = services.delete_media(media_id)

    return DeleteResponse(media_id=media_id, chunks_deleted=deleted)


@router.get("/media/{media_id}/export", response_class=PlainTextResponse, responses=ERROR_RESPONSES)
def export_media(
    media_id: str,
    format: ExportFormat = Query(ExportFormat.TEXT, description="Export format"),
    services: Services = Depends(get_services),
):
    """Export the indexed chunks of a media item."""
    with handle_errors("export"):
        content = services.export_media(media_id, format)

    return PlainTextResponse(content)


@router.get("/health", response_model=HealthResponse)
def health(services: Services = Depends(get_services)):
    """Health check endpoint."""
    with handle_errors("health"):
        chunk_count = services.store.count_chunks()
        media_count = len(services.store.list_media())

    return HealthResponse(
        status="healthy",
        chunk_count=chunk_count,
        media_count=media_count,
        embedding_model=services.embedder.model_name,
        vector_store=services.settings.vector_store,
    )
