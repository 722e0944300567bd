"""
Abstract base classes for model providers.

Defines the interfaces that embedding and generation backends must
implement, so the engine can run against OpenAI, Voyage AI, Claude or a
test double without change.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence


class EmbeddingProvider(ABC):
    """
    Abstract base class for embedding providers.

    Implementations must provide methods for:
    - Single text embedding
    - Batch text embedding
    - Token counting
    - Cost estimation

    Transport failures are retried inside the provider; once retries are
    exhausted they surface as ``EmbedError``.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier used by this provider."""
        pass

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Return the embedding dimensions for this model."""
        pass

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector as list of floats
        """
        pass

    @abstractmethod
    def embed_texts(
        self,
        texts: Sequence[str],
        batch_size: int = 100
    ) -> list[list[float]]:
        """
        Generate embeddings for multiple texts with batching.

        Args:
            texts: List of texts to embed
            batch_size: Number of texts per API call

        Returns:
            List of embedding vectors, in input order
        """
        pass

    def embed_query(self, text: str) -> list[float]:
        """Generate embedding for a search query."""
        return self.embed_text(text)


class GenerationProvider(ABC):
    """Answer synthesis backend. Failures surface as ``GenerationError``."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier used by this provider."""
        pass

    @abstractmethod
    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Generate a completion for a fully rendered prompt.

        Args:
            prompt: User prompt
            system: Optional system prompt

        Returns:
            Generated text
        """
        pass
