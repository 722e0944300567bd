"""
Retrieval and RAG over indexed transcripts.

Embeds queries, ranks chunks through the vector store, assembles a bounded
context and hands it to the generation provider.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from lytt.config import Settings, get_settings
from lytt.errors import (
    ConfigError,
    EmbedError,
    GenerationError,
    LyttError,
    ModelMismatchError,
    NoResultsError,
)
from lytt.ingestion.metadata import format_source_citation, media_url
from lytt.rag.chunking.models import format_timestamp
from lytt.rag.prompts import Prompts
from lytt.rag.providers.base import EmbeddingProvider, GenerationProvider
from lytt.rag.stores.base import ScoredChunk, VectorStore
from lytt.rag.tokens import count_tokens

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """A single search hit with its media context."""
    media_id: str
    media_title: str
    chunk_id: str
    chunk_index: int
    chunk_title: str
    content: str
    start_seconds: float
    end_seconds: float
    score: float

    @property
    def timestamp(self) -> str:
        return format_timestamp(self.start_seconds)

    @property
    def url(self) -> Optional[str]:
        return media_url(self.media_id, self.start_seconds)

    @property
    def citation(self) -> str:
        return format_source_citation(self.media_title, self.start_seconds, self.url)

    @classmethod
    def from_scored(cls, scored: ScoredChunk) -> "QueryResult":
        chunk = scored.chunk
        return cls(
            media_id=chunk.media_id,
            media_title=scored.media_title,
            chunk_id=chunk.chunk_id,
            chunk_index=chunk.index,
            chunk_title=chunk.title,
            content=chunk.content,
            start_seconds=chunk.start_seconds,
            end_seconds=chunk.end_seconds,
            score=scored.score,
        )

    def to_dict(self) -> dict:
        """Search result shape exposed over HTTP and CLI."""
        return {
            "video_id": self.media_id,
            "video_title": self.media_title,
            "chunk_title": self.chunk_title,
            "content": self.content,
            "start_seconds": self.start_seconds,
            "end_seconds": self.end_seconds,
            "timestamp": self.timestamp,
            "score": self.score,
            "url": self.url,
        }

    def to_source_dict(self) -> dict:
        """Source shape attached to RAG answers."""
        return {
            "video_id": self.media_id,
            "video_title": self.media_title,
            "timestamp": self.timestamp,
            "score": self.score,
            "content": self.content,
            "url": self.url,
        }


@dataclass
class AskResponse:
    """Generated answer plus exactly the chunks it was grounded on."""
    answer: str
    sources: list[QueryResult]
    model: str

    def to_dict(self) -> dict:
        return {
            "answer": self.answer,
            "sources": [s.to_source_dict() for s in self.sources],
        }


def format_context_entry(position: int, result: QueryResult) -> str:
    return f"---\n[{position}] {result.media_title} @ {result.timestamp}\n{result.content}\n---"


def format_context(results: Sequence[QueryResult]) -> str:
    """
    Format results as context for the LLM.

    Args:
        results: Context chunks in rank order

    Returns:
        Numbered excerpts separated by blank lines
    """
    return "\n\n".join(format_context_entry(i, r) for i, r in enumerate(results, 1))


class RetrievalEngine:
    """Search and retrieval-augmented answering over one vector store."""

    def __init__(
        self,
        store: VectorStore,
        embedder: EmbeddingProvider,
        generator: Optional[GenerationProvider] = None,
        prompts: Optional[Prompts] = None,
        settings: Optional[Settings] = None,
        token_counter: Optional[Callable[[str], int]] = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Vector store to search
            embedder: Embeds queries; must match the store dimension
            generator: Answer generator, required for ``ask``
            prompts: Prompt templates (defaults to settings)
            settings: Settings override
            token_counter: Token counting function for the context budget
        """
        self.settings = settings or get_settings()
        self.store = store
        self.embedder = embedder
        self.generator = generator
        self.prompts = prompts or Prompts.load(
            self.settings.prompts_dir, self.settings.prompt_variables
        )
        self.count_tokens = token_counter or count_tokens

    def _embed_query(self, query: str, operation: str) -> list[float]:
        # Query and stored vectors must share one embedding space
        stored = self.store.embedding_model
        if stored and stored != self.embedder.model_name:
            raise ModelMismatchError(stored, self.embedder.model_name, operation=operation)
        try:
            return self.embedder.embed_query(query)
        except LyttError:
            raise
        except Exception as e:
            raise EmbedError(f"Query embedding failed: {e}", operation=operation) from e

    def search(
        self,
        query: str,
        limit: int | None = None,
        min_score: float | None = None,
    ) -> list[QueryResult]:
        """
        Retrieve the chunks most similar to a query.

        Args:
            query: Search query
            limit: Maximum results (default from settings)
            min_score: Minimum cosine similarity (default from settings)

        Returns:
            Results by descending score; empty when nothing clears the threshold
        """
        limit = self.settings.default_search_limit if limit is None else limit
        min_score = self.settings.similarity_threshold if min_score is None else min_score

        vector = self._embed_query(query, operation="search")
        scored = self.store.search(vector, limit=limit, min_score=min_score)

        logger.info(f"Search returned {len(scored)} results for query: {query[:50]}")
        return [QueryResult.from_scored(s) for s in scored]

    def _apply_token_budget(self, results: list[QueryResult]) -> list[QueryResult]:
        """Keep leading results within ``max_context_tokens``; the first always stays."""
        budget = self.settings.max_context_tokens
        if budget is None or len(results) <= 1:
            return results

        kept = [results[0]]
        used = self.count_tokens(format_context_entry(1, results[0]))
        for position, result in enumerate(results[1:], 2):
            cost = self.count_tokens(format_context_entry(position, result))
            if used + cost > budget:
                logger.debug(f"Context budget reached after {len(kept)} chunks ({used} tokens)")
                break
            kept.append(result)
            used += cost
        return kept

    def ask(
        self,
        question: str,
        max_chunks: int | None = None,
        min_score: float | None = None,
    ) -> AskResponse:
        """
        Answer a question from indexed content.

        Args:
            question: The user's question
            max_chunks: Maximum context chunks (default from settings)
            min_score: Minimum cosine similarity (default from settings)

        Returns:
            AskResponse whose sources are the exact context chunks, in order

        Raises:
            NoResultsError: nothing relevant is indexed; the generator is not called
        """
        if self.generator is None:
            raise ConfigError("No generation provider configured", operation="ask")

        max_chunks = self.settings.max_context_chunks if max_chunks is None else max_chunks
        min_score = self.settings.similarity_threshold if min_score is None else min_score

        vector = self._embed_query(question, operation="ask")
        results = [
            QueryResult.from_scored(s)
            for s in self.store.search(vector, limit=max_chunks, min_score=min_score)
        ]
        if not results:
            raise NoResultsError(
                f"No indexed content scored above {min_score} for this question",
                operation="ask",
            )

        results = self._apply_token_budget(results)
        prompt = self.prompts.render_with_custom(
            self.prompts.rag.user,
            {"question": question, "context": format_context(results)},
        )
        system = self.prompts.render_with_custom(self.prompts.rag.system, {})

        try:
            answer = self.generator.generate(prompt, system=system)
        except LyttError:
            raise
        except Exception as e:
            raise GenerationError(f"Answer generation failed: {e}", operation="ask") from e

        logger.info(f"Answered with {len(results)} context chunks using {self.generator.model_name}")
        return AskResponse(answer=answer, sources=results, model=self.generator.model_name)
