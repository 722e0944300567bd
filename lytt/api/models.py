"""
Pydantic models for API request/response schemas.
"""

from typing import Optional
from pydantic import BaseModel, Field


# === Request Models ===

class SearchRequest(BaseModel):
    """Request body for search endpoint."""
    query: str = Field(..., min_length=1, max_length=2000, description="Search query")
    limit: int = Field(5, ge=1, le=50, description="Number of results")
    min_score: Optional[float] = Field(None, ge=-1.0, le=1.0, description="Minimum cosine similarity")


class AskRequest(BaseModel):
    """Request body for ask endpoint."""
    question: str = Field(..., min_length=1, max_length=2000, description="User's question")
    max_chunks: int = Field(10, ge=1, le=50, description="Maximum context chunks")
    min_score: Optional[float] = Field(None, ge=-1.0, le=1.0, description="Minimum cosine similarity")


class RechunkRequest(BaseModel):
    """Request body for rechunk endpoint."""
    media_id: str = Field("all", min_length=1, description="Media id, or 'all'")


# === Response Models ===

class SearchResult(BaseModel):
    """A single search result."""
    video_id: str
    video_title: str
    chunk_title: str
    content: str
    start_seconds: float
    end_seconds: float
    timestamp: str
    score: float
    url: Optional[str] = None


class SearchResponse(BaseModel):
    """Response from search endpoint."""
    query: str
    results: list[SearchResult]
    total_results: int


class SourceInfo(BaseModel):
    """A chunk used as context for an answer."""
    video_id: str
    video_title: str
    timestamp: str
    score: float
    content: str
    url: Optional[str] = None


class AskResponse(BaseModel):
    """Response from ask endpoint."""
    answer: str
    sources: list[SourceInfo]


class RechunkOutcome(BaseModel):
    """Result for one rechunked media item."""
    media_id: str
    status: str
    chunk_count: int
    error_kind: Optional[str] = None
    message: Optional[str] = None


class RechunkResponse(BaseModel):
    """Response from rechunk endpoint."""
    outcomes: list[RechunkOutcome]


class MediaInfo(BaseModel):
    """An indexed media item."""
    media_id: str
    title: str
    duration_seconds: float
    transcription_mode: str
    source_url: Optional[str] = None
    created_at: str
    indexed_at: str
    chunk_count: int


class MediaListResponse(BaseModel):
    """Response from media listing endpoint."""
    media: list[MediaInfo]
    total: int


class DeleteResponse(BaseModel):
    """Response from delete endpoint."""
    media_id: str
    chunks_deleted: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    chunk_count: int
    media_count: int
    embedding_model: str
    vector_store: str


class ErrorResponse(BaseModel):
    """Error response body."""
    kind: str
    message: str
