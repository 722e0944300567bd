"""
Data models for transcripts, chunks and embeddings.

Segments are the immutable units produced by transcription. Chunks are
retrieval-sized groups of consecutive segments, derived again on every
(re)chunk and never edited in place.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from hashlib import md5
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(seconds: float) -> str:
    """
    Format seconds for display.

    Returns ``MM:SS`` below one hour and ``H:MM:SS`` from one hour on.
    """
    total = int(max(seconds, 0))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class ChunkingStrategy(str, Enum):
    """Available chunking strategies."""

    TEMPORAL = "temporal"
    SEMANTIC = "semantic"


@dataclass(frozen=True)
class ChunkingConfig:
    """Duration bounds for chunking, in seconds."""

    target_chunk_seconds: float = 180
    min_chunk_seconds: float = 60
    max_chunk_seconds: float = 600

    @classmethod
    def from_settings(cls, settings) -> "ChunkingConfig":
        return cls(
            target_chunk_seconds=settings.target_chunk_seconds,
            min_chunk_seconds=settings.min_chunk_seconds,
            max_chunk_seconds=settings.max_chunk_seconds,
        )


@dataclass(frozen=True)
class Segment:
    """A single timestamped span of transcript text."""

    text: str
    start_seconds: float
    end_seconds: float

    @property
    def duration(self) -> float:
        return self.end_seconds - self.start_seconds

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "start_seconds": self.start_seconds,
            "end_seconds": self.end_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Segment":
        return cls(
            text=data["text"],
            start_seconds=float(data["start_seconds"]),
            end_seconds=float(data["end_seconds"]),
        )


@dataclass
class MediaItem:
    """
    A distinct indexed source (video or local file).

    ``chunk_count`` is only meaningful when reported by a vector store.
    """

    media_id: str
    title: str
    duration_seconds: float = 0.0
    transcription_mode: str = "whisper"
    source_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    indexed_at: datetime = field(default_factory=utcnow)
    chunk_count: int = 0

    def to_dict(self) -> dict:
        return {
            "media_id": self.media_id,
            "title": self.title,
            "duration_seconds": self.duration_seconds,
            "transcription_mode": self.transcription_mode,
            "source_url": self.source_url,
            "created_at": self.created_at.isoformat(),
            "indexed_at": self.indexed_at.isoformat(),
            "chunk_count": self.chunk_count,
        }


@dataclass
class Chunk:
    """
    A contiguous run of segments with a title.

    Chunk ids are deterministic so that re-running the chunker on the same
    transcript produces the same ids.
    """

    media_id: str
    index: int  # 0-indexed position within the media item
    title: str
    content: str
    start_seconds: float
    end_seconds: float
    summary: Optional[str] = None

    @property
    def chunk_id(self) -> str:
        return self.generate_id(self.media_id, self.index)

    @property
    def duration(self) -> float:
        return self.end_seconds - self.start_seconds

    @property
    def timestamp(self) -> str:
        return format_timestamp(self.start_seconds)

    @classmethod
    def generate_id(cls, media_id: str, index: int) -> str:
        """Generate deterministic chunk_id."""
        content = f"{media_id}::chunk::{index}"
        return md5(content.encode()).hexdigest()


@dataclass(frozen=True)
class Embedding:
    """An embedding vector tagged with the model that produced it."""

    vector: tuple[float, ...]
    model: str

    @classmethod
    def of(cls, vector, model: str) -> "Embedding":
        return cls(vector=tuple(float(v) for v in vector), model=model)

    @property
    def dimensions(self) -> int:
        return len(self.vector)
