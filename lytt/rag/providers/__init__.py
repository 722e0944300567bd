"""
Model providers package.

Provides pluggable embedding backends (OpenAI, Voyage AI) and Claude-based
generation and boundary proposal, all behind small abstract interfaces.
"""

from typing import Optional

from lytt.config import Settings, get_settings
from lytt.rag.providers.anthropic_provider import (
    ClaudeBoundaryAdapter,
    ClaudeGenerationProvider,
    parse_boundary_response,
)
from lytt.rag.providers.base import EmbeddingProvider, GenerationProvider
from lytt.rag.providers.openai_provider import OpenAIEmbeddingProvider
from lytt.rag.providers.voyage_provider import VoyageEmbeddingProvider


def create_embedding_provider(settings: Optional[Settings] = None) -> EmbeddingProvider:
    """Build the embedding provider selected by ``embedding_provider``."""
    settings = settings or get_settings()
    if settings.embedding_provider == "voyage":
        return VoyageEmbeddingProvider(settings=settings)
    return OpenAIEmbeddingProvider(settings=settings)


__all__ = [
    "ClaudeBoundaryAdapter",
    "ClaudeGenerationProvider",
    "EmbeddingProvider",
    "GenerationProvider",
    "OpenAIEmbeddingProvider",
    "VoyageEmbeddingProvider",
    "create_embedding_provider",
    "parse_boundary_response",
]
