"""
Vector store backends.

- SQLiteVectorStore: persistent, shared database file (default)
- MemoryVectorStore: process-local, for tests and experiments
"""

from typing import Optional

from lytt.config import Settings, get_settings
from lytt.rag.stores.base import ScoredChunk, VectorStore, cosine_similarity
from lytt.rag.stores.memory_store import MemoryVectorStore
from lytt.rag.stores.sqlite_store import SQLiteVectorStore


def create_vector_store(
    settings: Optional[Settings] = None,
    embedding_model: Optional[str] = None,
) -> VectorStore:
    """
    Build the vector store selected by ``vector_store``.

    ``embedding_model`` defaults to the configured provider's model.
    """
    settings = settings or get_settings()
    embedding_model = embedding_model or settings.active_embedding_model
    if settings.vector_store == "memory":
        return MemoryVectorStore(settings.active_embedding_dimensions, embedding_model)
    return SQLiteVectorStore(settings=settings, embedding_model=embedding_model)


__all__ = [
    "MemoryVectorStore",
    "SQLiteVectorStore",
    "ScoredChunk",
    "VectorStore",
    "cosine_similarity",
    "create_vector_store",
]
