"""
Time-based chunking.

Greedily packs consecutive segments up to the target duration without ever
splitting a segment.
"""

import logging
from typing import Sequence

from lytt.rag.chunking.base import (
    EPSILON,
    Chunker,
    build_chunk,
    merge_trailing,
    span,
    time_range_title,
    validate_config,
    validate_segments,
)
from lytt.rag.chunking.models import Chunk, ChunkingConfig, Segment

logger = logging.getLogger(__name__)


def group_segments(segments: Sequence[Segment], config: ChunkingConfig) -> list[list[Segment]]:
    """
    Group segments by elapsed time.

    A group closes once it reaches the target duration, or just before the
    segment that would push it past the maximum. A single segment longer
    than the maximum forms its own group.
    """
    groups: list[list[Segment]] = []
    current: list[Segment] = []

    for seg in segments:
        if current and seg.end_seconds - current[0].start_seconds > config.max_chunk_seconds + EPSILON:
            groups.append(current)
            current = []

        current.append(seg)

        if span(current) >= config.target_chunk_seconds - EPSILON:
            groups.append(current)
            current = []

    if current:
        groups.append(current)

    return merge_trailing(groups, config.min_chunk_seconds)


class TemporalChunker(Chunker):
    """Fixed-window chunker with time-range titles."""

    @property
    def name(self) -> str:
        return "temporal"

    def chunk(
        self,
        segments: Sequence[Segment],
        config: ChunkingConfig,
        media_id: str,
        media_title: str = "",
    ) -> list[Chunk]:
        validate_config(config)
        validate_segments(segments, media_id)

        groups = group_segments(segments, config)
        chunks = [
            build_chunk(media_id, i, group, time_range_title(group))
            for i, group in enumerate(groups)
        ]

        logger.debug(f"Temporal chunking produced {len(chunks)} chunks for {media_id}")
        return chunks
