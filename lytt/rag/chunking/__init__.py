"""
Chunking package for time-bounded transcript splitting.

Provides:
- Segment / Chunk / MediaItem data models
- Temporal chunking (fixed target duration)
- Semantic chunking (topic boundaries from a boundary adapter)
"""

from typing import Optional

from lytt.errors import ConfigError
from lytt.rag.chunking.base import BoundaryProposal, Chunker, SemanticBoundaryAdapter
from lytt.rag.chunking.models import (
    Chunk,
    ChunkingConfig,
    ChunkingStrategy,
    Embedding,
    MediaItem,
    Segment,
    format_timestamp,
)
from lytt.rag.chunking.semantic import SemanticChunker
from lytt.rag.chunking.temporal import TemporalChunker


def create_chunker(
    strategy: ChunkingStrategy | str,
    adapter: Optional[SemanticBoundaryAdapter] = None,
) -> Chunker:
    """
    Build a chunker for the requested strategy.

    Args:
        strategy: "temporal" or "semantic"
        adapter: Boundary adapter, required for semantic chunking

    Returns:
        Chunker instance
    """
    strategy = ChunkingStrategy(strategy)
    if strategy == ChunkingStrategy.TEMPORAL:
        return TemporalChunker()
    if adapter is None:
        raise ConfigError("Semantic chunking requires a boundary adapter", operation="chunk")
    return SemanticChunker(adapter)


__all__ = [
    # Data models
    "Chunk",
    "ChunkingConfig",
    "ChunkingStrategy",
    "Embedding",
    "MediaItem",
    "Segment",
    "format_timestamp",
    # Chunkers
    "BoundaryProposal",
    "Chunker",
    "SemanticBoundaryAdapter",
    "SemanticChunker",
    "TemporalChunker",
    "create_chunker",
]
