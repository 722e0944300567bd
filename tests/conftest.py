"""Shared fixtures and fake providers (no network access)."""

import re
from typing import Optional, Sequence

import pytest

from lytt.config import Settings
from lytt.errors import EmbedError
from lytt.rag.chunking.base import BoundaryProposal, SemanticBoundaryAdapter
from lytt.rag.chunking.models import MediaItem, Segment
from lytt.rag.providers.base import EmbeddingProvider, GenerationProvider
from lytt.services import Services, build_services

KEYWORDS = ("binary", "bitwise", "cooking", "music")


class FakeEmbedder(EmbeddingProvider):
    """Embeds text as keyword counts, one axis per keyword."""

    def __init__(self, keywords: Sequence[str] = KEYWORDS):
        self.keywords = tuple(keywords)
        self.calls: list[list[str]] = []
        self.fail_on: Optional[str] = None

    @property
    def model_name(self) -> str:
        return "fake-embedding"

    @property
    def dimensions(self) -> int:
        return len(self.keywords)

    def embed_text(self, text: str) -> list[float]:
        words = re.findall(r"[a-z]+", text.lower())
        return [float(words.count(k)) for k in self.keywords]

    def embed_texts(self, texts: Sequence[str], batch_size: int = 100) -> list[list[float]]:
        texts = list(texts)
        self.calls.append(texts)
        if self.fail_on and any(self.fail_on in t for t in texts):
            raise EmbedError("embedding service unavailable", operation="embed")
        return [self.embed_text(t) for t in texts]


class FakeGenerator(GenerationProvider):
    """Records prompts and returns a canned answer."""

    def __init__(self, answer: str = "Binary numbers use base two."):
        self.answer = answer
        self.prompts: list[str] = []
        self.systems: list[Optional[str]] = []
        self.error: Optional[Exception] = None

    @property
    def model_name(self) -> str:
        return "fake-claude"

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        if self.error is not None:
            raise self.error
        self.prompts.append(prompt)
        self.systems.append(system)
        return self.answer


class FakeBoundaryAdapter(SemanticBoundaryAdapter):
    """Returns preset proposals, or raises a preset error."""

    def __init__(
        self,
        proposals: Optional[list[BoundaryProposal]] = None,
        error: Optional[Exception] = None,
    ):
        self.proposals = proposals or []
        self.error = error
        self.calls: list[dict] = []

    def propose_boundaries(
        self,
        transcript: str,
        *,
        title: str,
        target_seconds: float,
        min_seconds: float,
        max_seconds: float,
    ) -> list[BoundaryProposal]:
        self.calls.append({
            "transcript": transcript,
            "title": title,
            "target_seconds": target_seconds,
            "min_seconds": min_seconds,
            "max_seconds": max_seconds,
        })
        if self.error is not None:
            raise self.error
        return list(self.proposals)


def uniform_segments(count: int, length: float = 30.0, text: str = "binary") -> list[Segment]:
    """``count`` back-to-back segments of ``length`` seconds each."""
    return [
        Segment(text=f"{text} part {i}", start_seconds=i * length, end_seconds=(i + 1) * length)
        for i in range(count)
    ]


def word_count(text: str) -> int:
    return len(text.split())


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=tmp_path,
        embedding_provider="openai",
        voyage_api_key="",
        embedding_dimensions=len(KEYWORDS),
        vector_store="sqlite",
        chunking_strategy="temporal",
        target_chunk_seconds=120,
        min_chunk_seconds=60,
        max_chunk_seconds=300,
        max_context_tokens=None,
        max_concurrent=2,
    )


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def services(settings: Settings, embedder: FakeEmbedder, generator: FakeGenerator) -> Services:
    return build_services(
        settings,
        embedder=embedder,
        generator=generator,
        token_counter=word_count,
    )


@pytest.fixture
def binary_media() -> MediaItem:
    return MediaItem(media_id="dQw4w9WgXcQ", title="Binary Basics")


@pytest.fixture
def cooking_media() -> MediaItem:
    return MediaItem(media_id="local_0123456789abcdef", title="Kitchen Notes")
