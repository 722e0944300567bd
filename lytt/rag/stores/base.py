"""
Abstract base class for vector stores.

Defines the interface shared by the SQLite and in-memory backends together
with the cosine scoring and ranking rules both must follow.
"""

import heapq
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np

from lytt.errors import DimensionMismatchError, InvalidBatchError, ModelMismatchError
from lytt.rag.chunking.models import Chunk, Embedding, MediaItem


@dataclass
class ScoredChunk:
    """A stored chunk matched by a similarity search."""

    chunk: Chunk
    media_title: str
    score: float


def cosine_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of every row in ``matrix`` against ``query``.

    Rows (or a query) with zero norm score 0.0.
    """
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / norms, 0.0)
    return np.clip(scores, -1.0, 1.0)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 if either has zero norm."""
    matrix = np.asarray([a], dtype=np.float64)
    return float(cosine_scores(matrix, np.asarray(b, dtype=np.float64))[0])


def rank(candidates: Iterable[ScoredChunk], limit: int) -> list[ScoredChunk]:
    """
    Top ``limit`` candidates by descending score.

    Ties break on ascending chunk index, then media id, so equal inputs
    always rank the same way.
    """
    if limit <= 0:
        return []
    return heapq.nsmallest(
        limit,
        candidates,
        key=lambda c: (-c.score, c.chunk.index, c.chunk.media_id),
    )


def to_vector(values: Sequence[float], dimensions: int, **context) -> np.ndarray:
    """Convert to a float64 vector, enforcing the store dimension."""
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1 or vector.shape[0] != dimensions:
        actual = vector.shape[0] if vector.ndim == 1 else vector.size
        raise DimensionMismatchError(dimensions, actual, **context)
    return vector


class VectorStore(ABC):
    """
    Chunk and embedding storage with similarity search.

    Writes for one media item are all-or-nothing: readers see either the
    previous chunk set or the new one, never a mix.
    """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Embedding dimension fixed for this store."""
        pass

    @property
    @abstractmethod
    def embedding_model(self) -> Optional[str]:
        """Model that produced the stored vectors, or None until one is recorded."""
        pass

    @abstractmethod
    def upsert_media_chunks(
        self,
        media_id: str,
        chunks: Sequence[Chunk],
        embeddings: Sequence[Embedding | Sequence[float]],
        media: Optional[MediaItem] = None,
    ) -> int:
        """
        Atomically replace all chunks of a media item.

        Args:
            media_id: Media item whose chunks are replaced
            chunks: New chunks, all belonging to ``media_id``
            embeddings: One vector per chunk, in the same order. Tagged
                ``Embedding`` values pin the store to their model.
            media: Optional metadata for the media summary row

        Returns:
            Number of chunks stored

        Raises:
            InvalidBatchError: chunk and embedding counts differ, or a chunk
                belongs to another media item
            ModelMismatchError: vectors come from a different model
            DimensionMismatchError: a vector has the wrong length
        """
        pass

    @abstractmethod
    def search(
        self,
        query_vector: Sequence[float],
        limit: int = 5,
        min_score: float = 0.3,
    ) -> list[ScoredChunk]:
        """
        Rank stored chunks by cosine similarity to ``query_vector``.

        Returns at most ``limit`` results with score >= ``min_score``.
        """
        pass

    @abstractmethod
    def list_media(self) -> list[MediaItem]:
        """List indexed media items with their chunk counts."""
        pass

    @abstractmethod
    def get_media(self, media_id: str) -> Optional[MediaItem]:
        """Get an indexed media item, or None."""
        pass

    @abstractmethod
    def delete_media(self, media_id: str) -> int:
        """
        Delete a media item and all its chunks.

        Returns:
            Number of chunks deleted

        Raises:
            NotFoundError: media item is not indexed
        """
        pass

    @abstractmethod
    def get_chunks(self, media_id: str) -> list[Chunk]:
        """Get the chunks of a media item in index order."""
        pass

    @abstractmethod
    def count_chunks(self) -> int:
        """Total number of stored chunks."""
        pass

    def is_indexed(self, media_id: str) -> bool:
        return self.get_media(media_id) is not None

    def _check_batch(
        self,
        media_id: str,
        chunks: Sequence[Chunk],
        embeddings: Sequence[Embedding | Sequence[float]],
    ) -> tuple[list[np.ndarray], Optional[str]]:
        """
        Validate an upsert batch before any write happens.

        Returns:
            Tuple of (float64 vectors, model tag carried by the batch or None)

        Raises:
            InvalidBatchError: count mismatch, foreign chunk or mixed model tags
            ModelMismatchError: tagged vectors come from another model
            DimensionMismatchError: a vector has the wrong length
        """
        if len(chunks) != len(embeddings):
            raise InvalidBatchError(
                f"Got {len(chunks)} chunks but {len(embeddings)} embeddings for {media_id}",
                operation="upsert",
                media_id=media_id,
            )
        for chunk in chunks:
            if chunk.media_id != media_id:
                raise InvalidBatchError(
                    f"Chunk {chunk.index} belongs to {chunk.media_id}, not {media_id}",
                    operation="upsert",
                    media_id=media_id,
                )

        models = {e.model for e in embeddings if isinstance(e, Embedding)}
        if len(models) > 1:
            raise InvalidBatchError(
                f"Batch mixes embedding models: {', '.join(sorted(models))}",
                operation="upsert",
                media_id=media_id,
            )
        model = models.pop() if models else None
        if model and self.embedding_model and model != self.embedding_model:
            raise ModelMismatchError(self.embedding_model, model, operation="upsert", media_id=media_id)

        vectors = [
            to_vector(
                e.vector if isinstance(e, Embedding) else e,
                self.dimensions,
                operation="upsert",
                media_id=media_id,
            )
            for e in embeddings
        ]
        return vectors, model
