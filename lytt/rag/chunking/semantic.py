"""
Topic-based chunking driven by a semantic boundary adapter.

The adapter proposes sections; this module snaps them onto segment
boundaries and rejects any proposal set that breaks the chunk invariants.
"""

import logging
from typing import Optional, Sequence

from lytt.errors import SemanticBoundaryError
from lytt.rag.chunking.base import (
    EPSILON,
    BoundaryProposal,
    Chunker,
    SemanticBoundaryAdapter,
    build_chunk,
    merge_trailing,
    span,
    time_range_title,
    validate_config,
    validate_segments,
)
from lytt.rag.chunking.models import Chunk, ChunkingConfig, Segment

logger = logging.getLogger(__name__)

# Proposed sections may overlap by this much before being rejected
OVERLAP_TOLERANCE_SECONDS = 0.5


def format_transcript_for_boundaries(segments: Sequence[Segment]) -> str:
    """Render segments as indexed, timestamped lines for the adapter."""
    lines = []
    for i, seg in enumerate(segments):
        lines.append(
            f"[{i}] ({seg.start_seconds:.1f}s - {seg.end_seconds:.1f}s) {seg.text.strip()}"
        )
    return "\n".join(lines)


def nearest_segment(segments: Sequence[Segment], seconds: float) -> int:
    """Index of the segment whose start is closest to ``seconds`` (ties go low)."""
    best = 0
    best_distance = abs(segments[0].start_seconds - seconds)
    for i in range(1, len(segments)):
        distance = abs(segments[i].start_seconds - seconds)
        if distance < best_distance:
            best, best_distance = i, distance
    return best


class SemanticChunker(Chunker):
    """Chunker that follows topic boundaries proposed by an external model."""

    def __init__(self, adapter: SemanticBoundaryAdapter):
        self.adapter = adapter

    @property
    def name(self) -> str:
        return "semantic"

    def chunk(
        self,
        segments: Sequence[Segment],
        config: ChunkingConfig,
        media_id: str,
        media_title: str = "",
    ) -> list[Chunk]:
        validate_config(config)
        validate_segments(segments, media_id)

        # Too short to split; the adapter has nothing to decide
        if span(segments) < config.min_chunk_seconds:
            return [build_chunk(media_id, 0, segments, media_title or time_range_title(segments))]

        proposals = self.adapter.propose_boundaries(
            format_transcript_for_boundaries(segments),
            title=media_title,
            target_seconds=config.target_chunk_seconds,
            min_seconds=config.min_chunk_seconds,
            max_seconds=config.max_chunk_seconds,
        )

        starts = self._resolve_starts(proposals, segments, media_id)
        groups = [
            list(segments[start:end])
            for start, end in zip(starts, starts[1:] + [len(segments)])
        ]
        titles = [p.title.strip() or time_range_title(g) for p, g in zip(proposals, groups)]
        summaries = [p.summary for p in proposals]

        group_count = len(groups)
        groups = merge_trailing(groups, config.min_chunk_seconds)
        if len(groups) < group_count:
            titles, summaries = titles[:-1], summaries[:-1]

        self._check_durations(groups, config, media_id, merged=len(groups) < group_count)

        chunks = [
            build_chunk(media_id, i, group, titles[i], summaries[i])
            for i, group in enumerate(groups)
        ]
        logger.debug(f"Semantic chunking produced {len(chunks)} chunks for {media_id}")
        return chunks

    def _resolve_starts(
        self,
        proposals: Sequence[BoundaryProposal],
        segments: Sequence[Segment],
        media_id: str,
    ) -> list[int]:
        """Map proposals to strictly increasing segment start indices."""
        if not proposals:
            raise SemanticBoundaryError(
                "Adapter proposed no sections", operation="chunk", media_id=media_id
            )

        starts: list[int] = []
        previous: Optional[BoundaryProposal] = None
        for i, proposal in enumerate(proposals):
            if proposal.start_seconds is not None and proposal.end_seconds is not None:
                if proposal.start_seconds >= proposal.end_seconds:
                    raise SemanticBoundaryError(
                        f"Section {i} has start {proposal.start_seconds} >= end {proposal.end_seconds}",
                        operation="chunk",
                        media_id=media_id,
                    )

            if previous is not None and previous.start_seconds is not None and proposal.start_seconds is not None:
                if proposal.start_seconds <= previous.start_seconds:
                    raise SemanticBoundaryError(
                        f"Section {i} starts at {proposal.start_seconds}, not after section {i - 1}",
                        operation="chunk",
                        media_id=media_id,
                    )
                if (
                    previous.end_seconds is not None
                    and proposal.start_seconds < previous.end_seconds - OVERLAP_TOLERANCE_SECONDS
                ):
                    raise SemanticBoundaryError(
                        f"Section {i} overlaps section {i - 1}",
                        operation="chunk",
                        media_id=media_id,
                    )

            if proposal.start_segment is not None:
                if not 0 <= proposal.start_segment < len(segments):
                    raise SemanticBoundaryError(
                        f"Section {i} starts at unknown segment {proposal.start_segment}",
                        operation="chunk",
                        media_id=media_id,
                    )
                starts.append(proposal.start_segment)
            elif proposal.start_seconds is not None:
                starts.append(nearest_segment(segments, proposal.start_seconds))
            else:
                raise SemanticBoundaryError(
                    f"Section {i} has no start", operation="chunk", media_id=media_id
                )
            previous = proposal

        # The first section always opens at the first segment
        starts[0] = 0

        for i in range(1, len(starts)):
            if starts[i] <= starts[i - 1]:
                raise SemanticBoundaryError(
                    f"Section {i} collapses onto section {i - 1} after snapping to segments",
                    operation="chunk",
                    media_id=media_id,
                )
        return starts

    def _check_durations(
        self,
        groups: Sequence[Sequence[Segment]],
        config: ChunkingConfig,
        media_id: str,
        merged: bool = False,
    ) -> None:
        """Reject groups outside the duration bounds, bar the allowed exceptions."""
        for i, group in enumerate(groups):
            duration = span(group)
            is_last = i == len(groups) - 1
            if len(group) == 1 and duration > config.max_chunk_seconds:
                continue
            if duration > config.max_chunk_seconds + EPSILON and not (is_last and merged):
                raise SemanticBoundaryError(
                    f"Section {i} lasts {duration:.1f}s, above max {config.max_chunk_seconds}s",
                    operation="chunk",
                    media_id=media_id,
                )
            if duration < config.min_chunk_seconds - EPSILON and len(groups) > 1:
                raise SemanticBoundaryError(
                    f"Section {i} lasts {duration:.1f}s, below min {config.min_chunk_seconds}s",
                    operation="chunk",
                    media_id=media_id,
                )
