"""
In-memory vector store for tests and throwaway sessions.
"""

import logging
import threading
from dataclasses import replace
from typing import Optional, Sequence

import numpy as np

from lytt.errors import NotFoundError
from lytt.rag.chunking.models import Chunk, Embedding, MediaItem, utcnow
from lytt.rag.stores.base import ScoredChunk, VectorStore, cosine_scores, rank, to_vector

logger = logging.getLogger(__name__)


class MemoryVectorStore(VectorStore):
    """Vector store held in process memory, with the same semantics as SQLite."""

    def __init__(self, dimensions: int, embedding_model: Optional[str] = None):
        self._dimensions = dimensions
        self._embedding_model = embedding_model
        self._lock = threading.Lock()
        self._chunks: dict[str, list[tuple[Chunk, np.ndarray]]] = {}
        self._media: dict[str, MediaItem] = {}

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def embedding_model(self) -> Optional[str]:
        return self._embedding_model

    def upsert_media_chunks(
        self,
        media_id: str,
        chunks: Sequence[Chunk],
        embeddings: Sequence[Embedding | Sequence[float]],
        media: Optional[MediaItem] = None,
    ) -> int:
        vectors, model = self._check_batch(media_id, chunks, embeddings)
        now = utcnow()

        if media is not None:
            summary = replace(media, indexed_at=now)
        elif media_id in self._media:
            summary = replace(self._media[media_id], indexed_at=now)
        else:
            summary = MediaItem(
                media_id=media_id,
                title=media_id,
                duration_seconds=max((c.end_seconds for c in chunks), default=0.0),
                created_at=now,
                indexed_at=now,
            )

        # Swap the whole list so readers never observe a partial set
        with self._lock:
            self._chunks[media_id] = list(zip(chunks, vectors))
            self._media[media_id] = summary
            if model and self._embedding_model is None:
                self._embedding_model = model

        logger.info(f"Stored {len(chunks)} chunks for {media_id}")
        return len(chunks)

    def search(
        self,
        query_vector: Sequence[float],
        limit: int = 5,
        min_score: float = 0.3,
    ) -> list[ScoredChunk]:
        query = to_vector(query_vector, self._dimensions, operation="search")
        if limit <= 0:
            return []

        with self._lock:
            entries = [entry for items in self._chunks.values() for entry in items]
            titles = {media_id: item.title for media_id, item in self._media.items()}

        if not entries:
            return []

        scores = cosine_scores(np.vstack([vector for _, vector in entries]), query)
        candidates = (
            ScoredChunk(chunk=chunk, media_title=titles.get(chunk.media_id, chunk.media_id), score=float(score))
            for (chunk, _), score in zip(entries, scores)
            if score >= min_score
        )
        return rank(candidates, limit)

    def list_media(self) -> list[MediaItem]:
        with self._lock:
            items = [self._summary(media_id) for media_id in self._media]
        items.sort(key=lambda m: m.media_id)
        items.sort(key=lambda m: m.indexed_at, reverse=True)
        return items

    def get_media(self, media_id: str) -> Optional[MediaItem]:
        with self._lock:
            if media_id not in self._media:
                return None
            return self._summary(media_id)

    def delete_media(self, media_id: str) -> int:
        with self._lock:
            if media_id not in self._media and media_id not in self._chunks:
                raise NotFoundError(
                    f"Media {media_id} is not indexed",
                    operation="delete",
                    media_id=media_id,
                )
            self._media.pop(media_id, None)
            deleted = len(self._chunks.pop(media_id, []))

        logger.info(f"Deleted {deleted} chunks for {media_id}")
        return deleted

    def get_chunks(self, media_id: str) -> list[Chunk]:
        with self._lock:
            items = list(self._chunks.get(media_id, []))
        return sorted((chunk for chunk, _ in items), key=lambda c: c.index)

    def count_chunks(self) -> int:
        with self._lock:
            return sum(len(items) for items in self._chunks.values())

    def _summary(self, media_id: str) -> MediaItem:
        return replace(self._media[media_id], chunk_count=len(self._chunks.get(media_id, [])))
