"""Tests for indexing and rechunking."""

import logging

import pytest

from conftest import FakeBoundaryAdapter, uniform_segments
from lytt.errors import EmbedError, NoStoredTranscriptError, SemanticBoundaryError
from lytt.ingestion.pipeline import ALL_MEDIA, IndexingPipeline, RechunkOutcome, RechunkStats
from lytt.rag.chunking import BoundaryProposal, Chunk, SemanticChunker
from lytt.rag.stores import SQLiteVectorStore


def semantic_pipeline(services, settings, adapter) -> IndexingPipeline:
    return IndexingPipeline(
        transcripts=services.transcripts,
        store=services.store,
        embedder=services.embedder,
        chunker=SemanticChunker(adapter),
        settings=settings,
    )


class TestIndexTranscript:
    def test_indexes_temporal_chunks(self, services, binary_media) -> None:
        result = services.pipeline.index_transcript(binary_media, uniform_segments(10))

        assert result.status == "indexed"
        assert result.chunk_count == 3
        assert result.strategy == "temporal"
        chunks = services.store.get_chunks(binary_media.media_id)
        assert [(c.start_seconds, c.end_seconds) for c in chunks] == [(0, 120), (120, 240), (240, 300)]

    def test_stores_transcript_for_rechunking(self, services, binary_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(4))

        assert services.transcripts.get_segments(binary_media.media_id) == uniform_segments(4)
        media = services.store.get_media(binary_media.media_id)
        assert media.title == "Binary Basics"
        assert media.duration_seconds == 120.0

    def test_embeds_chunk_content(self, services, embedder, binary_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(2))

        assert embedder.calls == [["binary part 0 binary part 1"]]

    def test_skips_already_indexed(self, services, embedder, binary_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(10))

        result = services.pipeline.index_transcript(binary_media, uniform_segments(4))

        assert result.status == "skipped"
        assert result.chunk_count == 3
        assert len(embedder.calls) == 1

    def test_force_replaces_chunks(self, services, binary_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(10))

        result = services.pipeline.index_transcript(binary_media, uniform_segments(4), force=True)

        assert result.status == "indexed"
        assert result.chunk_count == 1
        assert services.store.count_chunks() == 1

    def test_embed_failure_leaves_store_unchanged(self, services, embedder, binary_media) -> None:
        embedder.fail_on = "binary"

        with pytest.raises(EmbedError):
            services.pipeline.index_transcript(binary_media, uniform_segments(4))

        assert services.store.count_chunks() == 0
        assert services.transcripts.get_media(binary_media.media_id) is None

    def test_failed_reindex_keeps_stores_in_step(self, services, embedder, binary_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(4))
        embedder.fail_on = "cooking"

        with pytest.raises(EmbedError):
            services.pipeline.index_transcript(
                binary_media, uniform_segments(10, text="cooking"), force=True
            )

        assert services.transcripts.get_segments(binary_media.media_id) == uniform_segments(4)
        chunks = services.store.get_chunks(binary_media.media_id)
        assert [c.content for c in chunks] == ["binary part 0 binary part 1 binary part 2 binary part 3"]

    def test_records_embedding_model(self, services, settings, binary_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(4))

        assert services.store.embedding_model == "fake-embedding"
        assert SQLiteVectorStore(settings=settings).embedding_model == "fake-embedding"


class TestSemanticIndexing:
    def test_uses_semantic_boundaries(self, services, settings, binary_media) -> None:
        adapter = FakeBoundaryAdapter([
            BoundaryProposal("Number Systems", start_seconds=0),
            BoundaryProposal("Conversion", start_seconds=150),
        ])
        pipeline = semantic_pipeline(services, settings, adapter)

        result = pipeline.index_transcript(binary_media, uniform_segments(10))

        assert result.strategy == "semantic"
        assert [c.title for c in services.store.get_chunks(binary_media.media_id)] == [
            "Number Systems",
            "Conversion",
        ]

    def test_rejected_boundaries_fall_back_to_temporal(self, services, settings, binary_media, caplog) -> None:
        adapter = FakeBoundaryAdapter(error=SemanticBoundaryError("sections overlap"))
        pipeline = semantic_pipeline(services, settings, adapter)

        with caplog.at_level(logging.WARNING, logger="lytt.ingestion.pipeline"):
            result = pipeline.index_transcript(binary_media, uniform_segments(10))

        assert result.strategy == "temporal"
        assert result.chunk_count == 3
        assert "using temporal" in caplog.text

    def test_fallback_disabled_raises(self, services, settings, binary_media) -> None:
        strict = settings.model_copy(update={"semantic_fallback": False})
        adapter = FakeBoundaryAdapter(error=SemanticBoundaryError("sections overlap"))
        pipeline = semantic_pipeline(services, strict, adapter)

        with pytest.raises(SemanticBoundaryError):
            pipeline.index_transcript(binary_media, uniform_segments(10))

        assert services.store.count_chunks() == 0


class TestRechunk:
    def test_rechunk_is_idempotent(self, services, binary_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(10))
        before = services.store.get_chunks(binary_media.media_id)

        outcomes = services.pipeline.rechunk(binary_media.media_id)

        assert outcomes == [RechunkOutcome(binary_media.media_id, "ok", chunk_count=3)]
        assert services.store.get_chunks(binary_media.media_id) == before

    def test_rechunk_applies_new_config(self, services, settings, binary_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(10))
        wider = settings.model_copy(update={"target_chunk_seconds": 300})
        pipeline = IndexingPipeline(
            services.transcripts, services.store, services.embedder, services.pipeline.chunker, wider
        )

        outcome = pipeline.rechunk_media(binary_media.media_id)

        assert outcome.chunk_count == 1
        assert services.store.count_chunks() == 1

    def test_single_media_without_transcript_raises(self, services) -> None:
        with pytest.raises(NoStoredTranscriptError):
            services.pipeline.rechunk("missing")

    def test_rechunk_all_isolates_failures(self, services, binary_media, cooking_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(10))
        services.pipeline.index_transcript(cooking_media, uniform_segments(6, text="cooking"))
        orphan = Chunk("orphan", 0, "Orphan", "music", 0, 60)
        services.store.upsert_media_chunks("orphan", [orphan], [[0.0, 0.0, 0.0, 1.0]])

        outcomes = services.pipeline.rechunk(ALL_MEDIA)

        assert [o.media_id for o in outcomes] == sorted(
            ["dQw4w9WgXcQ", "local_0123456789abcdef", "orphan"]
        )
        by_id = {o.media_id: o for o in outcomes}
        assert by_id["dQw4w9WgXcQ"].status == "ok"
        assert by_id["local_0123456789abcdef"].chunk_count == 2
        assert by_id["orphan"].status == "error"
        assert by_id["orphan"].error_kind == "no_stored_transcript"
        assert len(services.store.get_chunks("orphan")) == 1

    def test_rechunk_all_reports_embed_failures(self, services, embedder, binary_media, cooking_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(10))
        services.pipeline.index_transcript(cooking_media, uniform_segments(6, text="cooking"))
        cooking_before = services.store.get_chunks(cooking_media.media_id)
        embedder.fail_on = "cooking"

        outcomes = services.pipeline.rechunk()

        by_id = {o.media_id: o for o in outcomes}
        assert by_id[binary_media.media_id].status == "ok"
        assert by_id[cooking_media.media_id].error_kind == "embed_error"
        assert services.store.get_chunks(cooking_media.media_id) == cooking_before

    def test_rechunk_all_reports_chunking_failures(self, services, settings, binary_media) -> None:
        services.pipeline.index_transcript(binary_media, uniform_segments(10))
        strict = settings.model_copy(update={"semantic_fallback": False})
        adapter = FakeBoundaryAdapter(error=SemanticBoundaryError("model returned no sections"))
        pipeline = semantic_pipeline(services, strict, adapter)

        outcomes = pipeline.rechunk(ALL_MEDIA)

        assert [(o.status, o.error_kind) for o in outcomes] == [("error", "semantic_boundary_error")]
        assert services.store.count_chunks() == 3

    def test_rechunk_all_on_empty_library(self, services) -> None:
        assert services.pipeline.rechunk(ALL_MEDIA) == []

    def test_stats_summary(self) -> None:
        stats = RechunkStats(
            outcomes=[
                RechunkOutcome("a", "ok", chunk_count=3),
                RechunkOutcome("b", "error", error_kind="embed_error", message="down"),
            ],
            duration_seconds=1.5,
        )

        assert stats.succeeded == 1
        assert stats.failed == 1
        assert stats.chunks_created == 3
        assert "Failed: 1" in str(stats)
