"""
OpenAI embedding provider implementation.

Uses text-embedding-3-small by default, batching requests and retrying
transient API failures.
"""

import logging
import time
from typing import Optional, Sequence

from openai import OpenAI, OpenAIError
from tenacity import retry, stop_after_attempt, wait_exponential

from lytt.config import Settings, get_settings
from lytt.errors import EmbedError
from lytt.rag.providers.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embedding provider."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        dimensions: int | None = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize OpenAI embedding provider.

        Args:
            api_key: OpenAI API key (defaults to settings)
            model: Model name (defaults to settings)
            dimensions: Embedding dimensions (defaults to settings)
            settings: Settings override
        """
        settings = settings or get_settings()
        self._api_key = api_key or settings.openai_api_key
        self._model = model or settings.embedding_model
        self._dimensions = dimensions or settings.embedding_dimensions

        # Lazy-initialized client
        self._client: OpenAI | None = None

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _get_client(self) -> OpenAI:
        """Get or create synchronous client."""
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10), reraise=True)
    def _create_embeddings(self, inputs: list[str]) -> list[list[float]]:
        response = self._get_client().embeddings.create(
            model=self._model,
            input=inputs,
            dimensions=self._dimensions,
        )

        # Sort by index to ensure order matches input
        embeddings: list[list[float]] = [[] for _ in inputs]
        for item in response.data:
            embeddings[item.index] = item.embedding
        return embeddings

    def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        return self.embed_texts([text])[0]

    def embed_texts(
        self,
        texts: Sequence[str],
        batch_size: int = 100
    ) -> list[list[float]]:
        """Generate embeddings for multiple texts with batching."""
        all_embeddings: list[list[float]] = []

        for i in range(0, len(texts), batch_size):
            batch = list(texts[i:i + batch_size])
            try:
                all_embeddings.extend(self._create_embeddings(batch))
            except OpenAIError as e:
                raise EmbedError(f"OpenAI embedding failed: {e}", operation="embed") from e

            logger.debug(f"Embedded batch {i // batch_size + 1} ({len(batch)} texts)")

            # Brief pause between batches for rate limiting
            if i + batch_size < len(texts):
                time.sleep(0.1)

        return all_embeddings
