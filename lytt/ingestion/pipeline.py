"""
Indexing pipeline: transcripts in, searchable chunks out.

Handles the write path after transcription and the rechunk workflow that
re-derives chunks and embeddings from stored transcripts.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from lytt.config import Settings, get_settings
from lytt.errors import EmbedError, LyttError, SemanticBoundaryError
from lytt.rag.chunking import Chunker, ChunkingConfig, TemporalChunker
from lytt.rag.chunking.models import Chunk, Embedding, MediaItem, Segment, utcnow
from lytt.rag.docstore import SQLiteTranscriptStore
from lytt.rag.providers.base import EmbeddingProvider
from lytt.rag.stores.base import VectorStore

logger = logging.getLogger(__name__)

ALL_MEDIA = "all"


@dataclass
class IndexResult:
    """Outcome of indexing one transcript."""
    media_id: str
    status: str  # "indexed" or "skipped"
    chunk_count: int
    strategy: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "media_id": self.media_id,
            "status": self.status,
            "chunk_count": self.chunk_count,
            "strategy": self.strategy,
        }


@dataclass
class RechunkOutcome:
    """Per-item result of a rechunk run."""
    media_id: str
    status: str  # "ok" or "error"
    chunk_count: int = 0
    error_kind: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "media_id": self.media_id,
            "status": self.status,
            "chunk_count": self.chunk_count,
        }
        if self.error_kind:
            data["error_kind"] = self.error_kind
            data["message"] = self.message
        return data


@dataclass
class RechunkStats:
    """Summary of a rechunk run."""
    outcomes: list[RechunkOutcome]
    duration_seconds: float

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "ok")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "error")

    @property
    def chunks_created(self) -> int:
        return sum(o.chunk_count for o in self.outcomes)

    def __str__(self) -> str:
        return (
            f"Rechunk Complete:\n"
            f"  Media items: {len(self.outcomes)}\n"
            f"  Succeeded: {self.succeeded}\n"
            f"  Failed: {self.failed}\n"
            f"  Chunks created: {self.chunks_created}\n"
            f"  Duration: {self.duration_seconds:.1f}s"
        )


class IndexingPipeline:
    """Chunks, embeds and stores transcripts."""

    def __init__(
        self,
        transcripts: SQLiteTranscriptStore,
        store: VectorStore,
        embedder: EmbeddingProvider,
        chunker: Chunker,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.transcripts = transcripts
        self.store = store
        self.embedder = embedder
        self.chunker = chunker
        self.config = ChunkingConfig.from_settings(self.settings)

    def chunk_segments(self, media: MediaItem, segments: Sequence[Segment]) -> tuple[list[Chunk], str]:
        """
        Chunk a transcript with the configured strategy.

        Rejected semantic boundaries fall back to temporal chunking when
        ``semantic_fallback`` is on.

        Returns:
            Tuple of (chunks, strategy actually used)
        """
        try:
            return self.chunker.chunk(segments, self.config, media.media_id, media.title), self.chunker.name
        except SemanticBoundaryError as e:
            if not self.settings.semantic_fallback:
                raise
            logger.warning(
                f"Semantic chunking rejected for {media.media_id}, using temporal: {e.message}"
            )
            fallback = TemporalChunker()
            return fallback.chunk(segments, self.config, media.media_id, media.title), fallback.name

    def _embed_chunks(self, media_id: str, chunks: Sequence[Chunk]) -> list[Embedding]:
        try:
            embeddings = self.embedder.embed_texts([chunk.content for chunk in chunks])
        except LyttError:
            raise
        except Exception as e:
            raise EmbedError(f"Embedding failed: {e}", operation="embed", media_id=media_id) from e

        if len(embeddings) != len(chunks):
            raise EmbedError(
                f"Embedder returned {len(embeddings)} vectors for {len(chunks)} chunks",
                operation="embed",
                media_id=media_id,
            )
        return [Embedding.of(vector, self.embedder.model_name) for vector in embeddings]

    def _chunk_embed_store(self, media: MediaItem, segments: Sequence[Segment]) -> tuple[int, str]:
        chunks, strategy = self.chunk_segments(media, segments)
        embeddings = self._embed_chunks(media.media_id, chunks)
        stored = self.store.upsert_media_chunks(media.media_id, chunks, embeddings, media=media)
        return stored, strategy

    def index_transcript(
        self,
        media: MediaItem,
        segments: Sequence[Segment],
        force: bool = False,
    ) -> IndexResult:
        """
        Store a transcript and index its chunks.

        Args:
            media: Media metadata
            segments: Ordered transcript segments
            force: Re-index even if the media item is already indexed

        Returns:
            IndexResult with status and chunk count
        """
        if not force and self.store.is_indexed(media.media_id):
            logger.debug(f"Skipping {media.media_id} - already indexed")
            existing = self.store.get_media(media.media_id)
            return IndexResult(
                media_id=media.media_id,
                status="skipped",
                chunk_count=existing.chunk_count if existing else 0,
            )

        if segments and not media.duration_seconds:
            media = replace(media, duration_seconds=segments[-1].end_seconds)
        media = replace(media, indexed_at=utcnow())

        # Transcript is saved only after its chunks are stored
        count, strategy = self._chunk_embed_store(media, segments)
        self.transcripts.save_transcript(media, segments)

        logger.info(f"Indexed {media.media_id} into {count} chunks ({strategy})")
        return IndexResult(media_id=media.media_id, status="indexed", chunk_count=count, strategy=strategy)

    def rechunk_media(self, media_id: str) -> RechunkOutcome:
        """
        Re-derive chunks and embeddings for one media item from its stored transcript.

        Raises:
            NoStoredTranscriptError: no segments stored for this media item
        """
        segments = self.transcripts.get_segments(media_id)
        media = (
            self.transcripts.get_media(media_id)
            or self.store.get_media(media_id)
            or MediaItem(media_id=media_id, title=media_id)
        )

        count, strategy = self._chunk_embed_store(media, segments)
        logger.info(f"Rechunked {media_id} into {count} chunks ({strategy})")
        return RechunkOutcome(media_id=media_id, status="ok", chunk_count=count)

    def _rechunk_isolated(self, media_id: str) -> RechunkOutcome:
        try:
            return self.rechunk_media(media_id)
        except LyttError as e:
            logger.error(f"Rechunk failed for {media_id}: {e.message}")
            return RechunkOutcome(media_id=media_id, status="error", error_kind=e.kind, message=e.message)
        except Exception as e:
            logger.exception(f"Unexpected error rechunking {media_id}")
            return RechunkOutcome(media_id=media_id, status="error", error_kind="internal_error", message=str(e))

    def known_media_ids(self) -> list[str]:
        """Every media id known to either store, sorted."""
        ids = {m.media_id for m in self.transcripts.list_media()}
        ids.update(m.media_id for m in self.store.list_media())
        return sorted(ids)

    def rechunk(self, target: str = ALL_MEDIA) -> list[RechunkOutcome]:
        """
        Rechunk one media item, or every known item with ``"all"``.

        A single-item rechunk raises on failure. A batch isolates failures
        per item and returns outcomes in media id order.
        """
        if target != ALL_MEDIA:
            return [self.rechunk_media(target)]

        start = time.time()
        media_ids = self.known_media_ids()
        workers = max(1, self.settings.max_concurrent)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(self._rechunk_isolated, media_ids))

        logger.info(str(RechunkStats(outcomes=outcomes, duration_seconds=time.time() - start)))
        return outcomes
