"""
Wiring of stores, providers, retrieval engine and indexing pipeline.

The HTTP routes and the CLI both go through ``Services`` so they expose the
same operations with the same errors.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

from lytt.config import Settings, get_settings
from lytt.errors import NotFoundError
from lytt.ingestion.export import ExportFormat, export_chunks
from lytt.ingestion.pipeline import IndexingPipeline
from lytt.rag.chunking import ChunkingStrategy, SemanticBoundaryAdapter, create_chunker
from lytt.rag.chunking.models import MediaItem
from lytt.rag.docstore import SQLiteTranscriptStore
from lytt.rag.prompts import Prompts
from lytt.rag.providers import (
    ClaudeBoundaryAdapter,
    ClaudeGenerationProvider,
    EmbeddingProvider,
    GenerationProvider,
    create_embedding_provider,
)
from lytt.rag.retriever import RetrievalEngine
from lytt.rag.stores import VectorStore, create_vector_store

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a transport layer needs."""
    settings: Settings
    transcripts: SQLiteTranscriptStore
    store: VectorStore
    embedder: EmbeddingProvider
    engine: RetrievalEngine
    pipeline: IndexingPipeline

    def list_media(self) -> list[MediaItem]:
        """
        Media known to either store.

        Vector store entries win, since they carry chunk counts.
        """
        indexed = {m.media_id: m for m in self.store.list_media()}
        for media in self.transcripts.list_media():
            indexed.setdefault(media.media_id, media)
        return sorted(indexed.values(), key=lambda m: (m.indexed_at, m.media_id), reverse=True)

    def get_media(self, media_id: str) -> MediaItem:
        media = self.store.get_media(media_id) or self.transcripts.get_media(media_id)
        if media is None:
            raise NotFoundError(f"Unknown media {media_id}", operation="get_media", media_id=media_id)
        return media

    def delete_media(self, media_id: str) -> int:
        """
        Remove a media item from both stores.

        Returns:
            Number of chunks deleted

        Raises:
            NotFoundError: neither store knows the media item
        """
        in_store = self.store.is_indexed(media_id)
        in_transcripts = self.transcripts.get_media(media_id) is not None
        if not in_store and not in_transcripts:
            raise NotFoundError(f"Unknown media {media_id}", operation="delete", media_id=media_id)

        deleted = self.store.delete_media(media_id) if in_store else 0
        if in_transcripts:
            self.transcripts.delete_media(media_id)

        logger.info(f"Deleted media {media_id} ({deleted} chunks)")
        return deleted

    def export_media(self, media_id: str, export_format: ExportFormat | str = ExportFormat.TEXT) -> str:
        chunks = self.store.get_chunks(media_id)
        if not chunks:
            raise NotFoundError(
                f"No indexed content for {media_id}", operation="export", media_id=media_id
            )
        media = self.store.get_media(media_id)
        return export_chunks(media_id, media.title if media else media_id, chunks, export_format)


def build_services(
    settings: Optional[Settings] = None,
    embedder: Optional[EmbeddingProvider] = None,
    generator: Optional[GenerationProvider] = None,
    boundary_adapter: Optional[SemanticBoundaryAdapter] = None,
    store: Optional[VectorStore] = None,
    token_counter: Optional[Callable[[str], int]] = None,
) -> Services:
    """
    Build services from settings, with optional provider overrides.

    Args:
        settings: Settings override
        embedder: Embedding provider (defaults to ``embedding_provider``)
        generator: Generation provider (defaults to Claude)
        boundary_adapter: Semantic boundary adapter (defaults to Claude)
        store: Vector store (defaults to ``vector_store``)
        token_counter: Token counter for the context budget

    Returns:
        Services instance
    """
    settings = settings or get_settings()
    prompts = Prompts.load(settings.prompts_dir, settings.prompt_variables)

    transcripts = SQLiteTranscriptStore(settings=settings)
    embedder = embedder or create_embedding_provider(settings)
    store = store or create_vector_store(settings, embedding_model=embedder.model_name)
    generator = generator or ClaudeGenerationProvider(settings)

    strategy = ChunkingStrategy(settings.chunking_strategy)
    if strategy == ChunkingStrategy.SEMANTIC and boundary_adapter is None:
        boundary_adapter = ClaudeBoundaryAdapter(settings, prompts)
    chunker = create_chunker(strategy, boundary_adapter)

    engine = RetrievalEngine(
        store=store,
        embedder=embedder,
        generator=generator,
        prompts=prompts,
        settings=settings,
        token_counter=token_counter,
    )
    pipeline = IndexingPipeline(
        transcripts=transcripts,
        store=store,
        embedder=embedder,
        chunker=chunker,
        settings=settings,
    )

    logger.info(f"Services ready: {settings.vector_store} store, {embedder.model_name} embeddings, {chunker.name} chunking")
    return Services(
        settings=settings,
        transcripts=transcripts,
        store=store,
        embedder=embedder,
        engine=engine,
        pipeline=pipeline,
    )


@lru_cache
def get_services() -> Services:
    """Get cached services built from environment settings."""
    return build_services(get_settings())
