"""
Chunker interface and the invariant checks shared by every strategy.

Whatever strategy proposes the boundaries, the helpers here are the final
authority on ordering, coverage and duration bounds.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from lytt.errors import ChunkingError
from lytt.rag.chunking.models import Chunk, ChunkingConfig, Segment, format_timestamp

logger = logging.getLogger(__name__)

# Float slack when comparing spans against duration bounds
EPSILON = 1e-6


@dataclass(frozen=True)
class BoundaryProposal:
    """
    A section suggested by a semantic boundary adapter.

    Either ``start_segment`` (index into the segment list) or
    ``start_seconds`` must be set.
    """

    title: str
    start_seconds: Optional[float] = None
    end_seconds: Optional[float] = None
    start_segment: Optional[int] = None
    summary: Optional[str] = None


class SemanticBoundaryAdapter(ABC):
    """External text-analysis service that proposes section boundaries."""

    @abstractmethod
    def propose_boundaries(
        self,
        transcript: str,
        *,
        title: str,
        target_seconds: float,
        min_seconds: float,
        max_seconds: float,
    ) -> list[BoundaryProposal]:
        """
        Propose ordered sections for a timestamped transcript.

        Raises:
            SemanticBoundaryError: adapter unreachable or response malformed
        """
        pass


class Chunker(ABC):
    """Groups ordered segments into chunks."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the strategy identifier."""
        pass

    @abstractmethod
    def chunk(
        self,
        segments: Sequence[Segment],
        config: ChunkingConfig,
        media_id: str,
        media_title: str = "",
    ) -> list[Chunk]:
        """
        Split segments into chunks.

        Args:
            segments: Time-ordered, non-overlapping transcript segments
            config: Duration bounds
            media_id: Owning media item
            media_title: Human title, passed to semantic adapters

        Returns:
            Ordered list of chunks

        Raises:
            ChunkingError: invalid config or segments
        """
        pass


def validate_config(config: ChunkingConfig) -> None:
    """Reject duration bounds that cannot be satisfied."""
    if min(config.target_chunk_seconds, config.min_chunk_seconds, config.max_chunk_seconds) <= 0:
        raise ChunkingError(
            f"Chunk durations must be positive: {config}",
            operation="chunk",
        )
    if config.min_chunk_seconds > config.max_chunk_seconds:
        raise ChunkingError(
            f"min_chunk_seconds ({config.min_chunk_seconds}) exceeds "
            f"max_chunk_seconds ({config.max_chunk_seconds})",
            operation="chunk",
        )


def validate_segments(segments: Sequence[Segment], media_id: str = "") -> None:
    """Check that segments are non-empty, well-formed and time-ordered."""
    if not segments:
        raise ChunkingError("No segments to chunk", operation="chunk", media_id=media_id or None)

    previous: Optional[Segment] = None
    for i, seg in enumerate(segments):
        if seg.start_seconds >= seg.end_seconds:
            raise ChunkingError(
                f"Segment {i} has start {seg.start_seconds} >= end {seg.end_seconds}",
                operation="chunk",
                media_id=media_id or None,
            )
        if previous is not None and seg.start_seconds < previous.end_seconds - EPSILON:
            raise ChunkingError(
                f"Segment {i} starts at {seg.start_seconds} before segment {i - 1} "
                f"ends at {previous.end_seconds}",
                operation="chunk",
                media_id=media_id or None,
            )
        previous = seg


def span(group: Sequence[Segment]) -> float:
    """Elapsed time covered by a run of segments, gaps included."""
    return group[-1].end_seconds - group[0].start_seconds


def merge_trailing(groups: list[list[Segment]], min_seconds: float) -> list[list[Segment]]:
    """Absorb an undersized final group into the one before it."""
    if len(groups) > 1 and span(groups[-1]) < min_seconds - EPSILON:
        tail = groups.pop()
        logger.debug(f"Merging trailing {span(tail):.1f}s remainder into previous chunk")
        groups[-1] = groups[-1] + tail
    return groups


def time_range_title(group: Sequence[Segment]) -> str:
    """Synthesized label for chunks without a semantic title."""
    return f"{format_timestamp(group[0].start_seconds)} - {format_timestamp(group[-1].end_seconds)}"


def build_chunk(
    media_id: str,
    index: int,
    group: Sequence[Segment],
    title: str,
    summary: Optional[str] = None,
) -> Chunk:
    """Build a chunk spanning a run of segments."""
    content = " ".join(seg.text.strip() for seg in group if seg.text.strip())
    return Chunk(
        media_id=media_id,
        index=index,
        title=title,
        content=content,
        start_seconds=group[0].start_seconds,
        end_seconds=group[-1].end_seconds,
        summary=summary,
    )
