"""
Error taxonomy for the chunking and retrieval engine.

Every failure carries a stable machine-readable ``kind`` plus a human
message, so the HTTP and CLI layers can report it without guessing.
"""

from typing import Optional


class LyttError(Exception):
    """Base class for all engine errors."""

    kind = "lytt_error"

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        media_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.media_id = media_id

    def to_dict(self) -> dict:
        """Serialize for API responses."""
        data = {"kind": self.kind, "message": self.message}
        if self.operation:
            data["operation"] = self.operation
        if self.media_id:
            data["media_id"] = self.media_id
        if self.__cause__ is not None:
            data["cause"] = str(self.__cause__)
        return data


class ConfigError(LyttError):
    """Invalid or missing configuration."""

    kind = "config_error"


class ChunkingError(LyttError):
    """Chunker invariant violation or invalid chunking config."""

    kind = "chunking_error"


class SemanticBoundaryError(ChunkingError):
    """Semantic boundary adapter failed or proposed invalid boundaries."""

    kind = "semantic_boundary_error"


class DimensionMismatchError(LyttError):
    """Vector dimensionality does not match the store."""

    kind = "dimension_mismatch"

    def __init__(self, expected: int, actual: int, **kwargs):
        super().__init__(
            f"Expected embedding dimension {expected}, got {actual}",
            **kwargs,
        )
        self.expected = expected
        self.actual = actual


class ModelMismatchError(LyttError):
    """Vectors come from a different embedding model than the store holds."""

    kind = "model_mismatch"

    def __init__(self, expected: str, actual: str, **kwargs):
        super().__init__(
            f"Store holds embeddings from {expected}, got {actual}",
            **kwargs,
        )
        self.expected = expected
        self.actual = actual


class InvalidBatchError(LyttError):
    """Upsert batch is malformed (count mismatch or foreign chunks)."""

    kind = "invalid_batch"


class NotFoundError(LyttError):
    """Unknown media or chunk."""

    kind = "not_found"


class NoStoredTranscriptError(LyttError):
    """Media item has no persisted segments and cannot be rechunked."""

    kind = "no_stored_transcript"


class EmbedError(LyttError):
    """Embedding adapter failure (network, quota, malformed response)."""

    kind = "embed_error"


class GenerationError(LyttError):
    """Generation adapter failure."""

    kind = "generation_error"


class NoResultsError(LyttError):
    """Nothing scored above the similarity threshold."""

    kind = "no_results"


class StorageError(LyttError):
    """Underlying persistence fault (disk, corruption, locking)."""

    kind = "storage_error"
