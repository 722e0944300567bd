"""
Voyage AI embedding provider implementation.

Voyage models distinguish documents from queries, so chunks are embedded
with ``input_type="document"`` and searches with ``input_type="query"``.
"""

import logging
import time
from typing import Optional, Sequence

import voyageai
from tenacity import retry, stop_after_attempt, wait_exponential
from voyageai.error import VoyageError

from lytt.config import Settings, get_settings
from lytt.errors import ConfigError, EmbedError
from lytt.rag.providers.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class VoyageEmbeddingProvider(EmbeddingProvider):
    """
    Voyage AI embedding provider.

    Default model: voyage-3 (1024 dimensions)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self._api_key = api_key or settings.voyage_api_key
        self._model = model or settings.voyage_embedding_model
        self._dimensions = settings.voyage_embedding_dimensions

        if not self._api_key:
            raise ConfigError(
                "Voyage API key required. Set VOYAGE_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self._client = voyageai.Client(api_key=self._api_key)

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @retry(stop=stop_after_attempt(5), wait=wait_exponential(min=2, max=60), reraise=True)
    def _embed_single_batch(
        self,
        texts: list[str],
        input_type: str = "document",
    ) -> list[list[float]]:
        """Embed a single batch with retry logic."""
        result = self._client.embed(
            texts=texts,
            model=self._model,
            input_type=input_type,
        )
        return result.embeddings

    def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single document text."""
        return self.embed_texts([text])[0]

    def embed_query(self, text: str) -> list[float]:
        """Generate embedding for a search query."""
        return self.embed_texts([text], input_type="query")[0]

    def embed_texts(
        self,
        texts: Sequence[str],
        batch_size: int = 50,
        input_type: str = "document",
    ) -> list[list[float]]:
        """
        Generate embeddings for multiple texts with batching.

        Voyage supports up to 128 texts per request, but we use smaller
        batches to avoid rate limits.

        Args:
            texts: List of texts to embed
            batch_size: Texts per API call (capped at 50)
            input_type: "document" for indexing, "query" for searching

        Returns:
            List of embedding vectors
        """
        batch_size = min(batch_size, 50)
        all_embeddings: list[list[float]] = []

        for i in range(0, len(texts), batch_size):
            batch = list(texts[i:i + batch_size])
            try:
                all_embeddings.extend(self._embed_single_batch(batch, input_type))
            except VoyageError as e:
                raise EmbedError(f"Voyage embedding failed: {e}", operation="embed") from e

            # Longer pause between batches for rate limiting
            if i + batch_size < len(texts):
                time.sleep(1.0)

        return all_embeddings
