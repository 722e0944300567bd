"""Tests for temporal and semantic chunking."""

import pytest

from conftest import FakeBoundaryAdapter, uniform_segments
from lytt.errors import ChunkingError, ConfigError, SemanticBoundaryError
from lytt.rag.chunking import (
    BoundaryProposal,
    Chunk,
    ChunkingConfig,
    ChunkingStrategy,
    SemanticChunker,
    Segment,
    TemporalChunker,
    create_chunker,
    format_timestamp,
)

DEFAULT = ChunkingConfig()


def durations(chunks: list[Chunk]) -> list[float]:
    return [c.duration for c in chunks]


class TestFormatTimestamp:
    def test_minutes_and_seconds(self) -> None:
        assert format_timestamp(0) == "00:00"
        assert format_timestamp(205.9) == "03:25"

    def test_hours(self) -> None:
        assert format_timestamp(3600) == "1:00:00"
        assert format_timestamp(3725) == "1:02:05"


class TestTemporalChunker:
    def test_short_trailing_segment_merges_into_single_chunk(self) -> None:
        segments = [
            Segment("Intro", 0, 30),
            Segment("Deep dive", 30, 200),
            Segment("Wrap", 200, 210),
        ]
        config = ChunkingConfig(target_chunk_seconds=180, min_chunk_seconds=60, max_chunk_seconds=240)

        chunks = TemporalChunker().chunk(segments, config, "vid")

        assert len(chunks) == 1
        assert chunks[0].start_seconds == 0
        assert chunks[0].end_seconds == 210
        assert chunks[0].content == "Intro Deep dive Wrap"

    def test_closes_chunks_at_target(self) -> None:
        chunks = TemporalChunker().chunk(uniform_segments(20), DEFAULT, "vid")

        assert durations(chunks) == [180, 180, 180, 60]
        assert [c.index for c in chunks] == [0, 1, 2, 3]

    def test_undersized_remainder_merges_backward(self) -> None:
        chunks = TemporalChunker().chunk(uniform_segments(19), DEFAULT, "vid")

        assert durations(chunks) == [180, 180, 210]
        assert chunks[-1].end_seconds == 570

    def test_closes_before_exceeding_max(self) -> None:
        segments = [Segment("a", 0, 100), Segment("b", 100, 150), Segment("c", 150, 260)]
        config = ChunkingConfig(target_chunk_seconds=180, min_chunk_seconds=60, max_chunk_seconds=200)

        chunks = TemporalChunker().chunk(segments, config, "vid")

        assert [(c.start_seconds, c.end_seconds) for c in chunks] == [(0, 150), (150, 260)]

    def test_never_splits_oversized_segment(self) -> None:
        segments = [Segment("long", 0, 700), Segment("b", 700, 760), Segment("c", 760, 900)]

        chunks = TemporalChunker().chunk(segments, DEFAULT, "vid")

        assert [(c.start_seconds, c.end_seconds) for c in chunks] == [(0, 700), (700, 900)]

    def test_media_shorter_than_min_yields_one_chunk(self) -> None:
        chunks = TemporalChunker().chunk([Segment("hi", 0, 30)], DEFAULT, "vid")

        assert len(chunks) == 1
        assert chunks[0].duration == 30

    def test_chunks_cover_segments_contiguously(self) -> None:
        segments = uniform_segments(37, length=17.0)
        chunks = TemporalChunker().chunk(segments, DEFAULT, "vid")

        assert chunks[0].start_seconds == segments[0].start_seconds
        assert chunks[-1].end_seconds == segments[-1].end_seconds
        for previous, current in zip(chunks, chunks[1:]):
            assert previous.end_seconds == current.start_seconds
        for chunk in chunks[:-1]:
            assert DEFAULT.min_chunk_seconds <= chunk.duration <= DEFAULT.max_chunk_seconds

    def test_titles_are_time_ranges(self) -> None:
        chunks = TemporalChunker().chunk(uniform_segments(8), DEFAULT, "vid")

        assert chunks[0].title == "00:00 - 03:00"
        assert chunks[1].title == "03:00 - 04:00"

    def test_is_deterministic(self) -> None:
        segments = uniform_segments(25)
        first = TemporalChunker().chunk(segments, DEFAULT, "vid")
        second = TemporalChunker().chunk(segments, DEFAULT, "vid")

        assert [c.chunk_id for c in first] == [c.chunk_id for c in second]
        assert first == second

    def test_empty_segments_raise(self) -> None:
        with pytest.raises(ChunkingError):
            TemporalChunker().chunk([], DEFAULT, "vid")

    def test_min_above_max_raises(self) -> None:
        config = ChunkingConfig(target_chunk_seconds=100, min_chunk_seconds=300, max_chunk_seconds=200)
        with pytest.raises(ChunkingError):
            TemporalChunker().chunk(uniform_segments(3), config, "vid")

    def test_non_positive_bound_raises(self) -> None:
        config = ChunkingConfig(target_chunk_seconds=0)
        with pytest.raises(ChunkingError):
            TemporalChunker().chunk(uniform_segments(3), config, "vid")

    def test_overlapping_segments_raise(self) -> None:
        segments = [Segment("a", 0, 30), Segment("b", 20, 50)]
        with pytest.raises(ChunkingError):
            TemporalChunker().chunk(segments, DEFAULT, "vid")

    def test_inverted_segment_raises(self) -> None:
        with pytest.raises(ChunkingError):
            TemporalChunker().chunk([Segment("a", 10, 10)], DEFAULT, "vid")


class TestChunkId:
    def test_depends_only_on_media_and_index(self) -> None:
        a = Chunk("vid", 3, "t", "content", 0, 10)
        b = Chunk("vid", 3, "other", "different", 5, 20)

        assert a.chunk_id == b.chunk_id == Chunk.generate_id("vid", 3)
        assert a.chunk_id != Chunk.generate_id("vid", 4)


SEMANTIC = ChunkingConfig(target_chunk_seconds=120, min_chunk_seconds=60, max_chunk_seconds=200)


class TestSemanticChunker:
    def test_snaps_proposals_to_segment_starts(self) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("Number Systems", start_seconds=0, end_seconds=118, summary="Bases"),
            BoundaryProposal("Conversion", start_seconds=118, end_seconds=212),
            BoundaryProposal("Practice", start_seconds=212, end_seconds=300),
        ])

        chunks = SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid", "Binary Basics")

        assert [(c.start_seconds, c.end_seconds) for c in chunks] == [(0, 120), (120, 210), (210, 300)]
        assert [c.title for c in chunks] == ["Number Systems", "Conversion", "Practice"]
        assert chunks[0].summary == "Bases"

    def test_passes_bounds_and_title_to_adapter(self) -> None:
        adapter = FakeBoundaryAdapter([BoundaryProposal("All", start_seconds=0)])

        SemanticChunker(adapter).chunk(uniform_segments(4), SEMANTIC, "vid", "Binary Basics")

        call = adapter.calls[0]
        assert call["title"] == "Binary Basics"
        assert (call["target_seconds"], call["min_seconds"], call["max_seconds"]) == (120, 60, 200)
        assert "[3] (90.0s - 120.0s) binary part 3" in call["transcript"]

    def test_accepts_segment_indices(self) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("First", start_segment=0),
            BoundaryProposal("Second", start_segment=5),
        ])

        chunks = SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid")

        assert [(c.start_seconds, c.end_seconds) for c in chunks] == [(0, 150), (150, 300)]

    def test_ties_snap_to_earlier_segment(self) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("First", start_seconds=0),
            BoundaryProposal("Second", start_seconds=135),
        ])

        chunks = SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid")

        assert chunks[1].start_seconds == 120

    def test_short_media_skips_adapter(self) -> None:
        adapter = FakeBoundaryAdapter()
        segments = [Segment("hello", 0, 20), Segment("there", 20, 40)]

        chunks = SemanticChunker(adapter).chunk(segments, SEMANTIC, "vid", "Tiny")

        assert len(chunks) == 1
        assert chunks[0].title == "Tiny"
        assert adapter.calls == []

    def test_trailing_fragment_merges_and_keeps_previous_title(self) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("One", start_seconds=0),
            BoundaryProposal("Two", start_seconds=120),
            BoundaryProposal("Outro", start_seconds=270),
        ])

        chunks = SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid")

        assert [c.title for c in chunks] == ["One", "Two"]
        assert chunks[-1].end_seconds == 300

    def test_rejects_non_increasing_starts(self) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("A", start_seconds=0),
            BoundaryProposal("B", start_seconds=150),
            BoundaryProposal("C", start_seconds=120),
        ])
        with pytest.raises(SemanticBoundaryError):
            SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid")

    def test_rejects_overlapping_sections(self) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("A", start_seconds=0, end_seconds=160),
            BoundaryProposal("B", start_seconds=150, end_seconds=300),
        ])
        with pytest.raises(SemanticBoundaryError):
            SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid")

    def test_rejects_sections_collapsing_onto_one_segment(self) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("A", start_seconds=0),
            BoundaryProposal("B", start_seconds=91),
            BoundaryProposal("C", start_seconds=95),
        ])
        with pytest.raises(SemanticBoundaryError):
            SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid")

    def test_rejects_undersized_section(self) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("A", start_seconds=0),
            BoundaryProposal("B", start_seconds=30),
        ])
        with pytest.raises(SemanticBoundaryError):
            SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid")

    def test_rejects_oversized_section(self) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("A", start_seconds=0),
            BoundaryProposal("B", start_seconds=240),
        ])
        with pytest.raises(SemanticBoundaryError):
            SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid")

    def test_rejects_empty_proposals(self) -> None:
        with pytest.raises(SemanticBoundaryError):
            SemanticChunker(FakeBoundaryAdapter([])).chunk(uniform_segments(10), SEMANTIC, "vid")

    def test_adapter_errors_propagate(self) -> None:
        adapter = FakeBoundaryAdapter(error=SemanticBoundaryError("service down"))
        with pytest.raises(SemanticBoundaryError, match="service down"):
            SemanticChunker(adapter).chunk(uniform_segments(10), SEMANTIC, "vid")

    def test_boundary_error_is_a_chunking_error(self) -> None:
        assert issubclass(SemanticBoundaryError, ChunkingError)
        assert SemanticBoundaryError("x").kind == "semantic_boundary_error"


class TestCreateChunker:
    def test_temporal(self) -> None:
        assert isinstance(create_chunker("temporal"), TemporalChunker)

    def test_semantic_requires_adapter(self) -> None:
        with pytest.raises(ConfigError):
            create_chunker(ChunkingStrategy.SEMANTIC)

    def test_semantic(self) -> None:
        chunker = create_chunker("semantic", FakeBoundaryAdapter())
        assert chunker.name == "semantic"
