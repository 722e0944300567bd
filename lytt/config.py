"""
Configuration management using Pydantic Settings.
Loads from environment variables with sensible defaults for local use.
"""

from pathlib import Path
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    voyage_api_key: str = ""  # For Voyage AI embeddings

    # Paths
    data_dir: Path = Path.home() / ".lytt"
    db_path: Optional[Path] = None  # Defaults to data_dir/lytt.db
    prompts_dir: Optional[Path] = None  # Directory with chunking.json / rag.json overrides

    # Provider selection
    embedding_provider: Literal["openai", "voyage"] = "openai"
    vector_store: Literal["sqlite", "memory"] = "sqlite"

    # Embedding settings (OpenAI)
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536

    # Voyage AI embedding settings
    voyage_embedding_model: str = "voyage-3"
    voyage_embedding_dimensions: int = 1024

    # Chunking settings (seconds)
    chunking_strategy: Literal["temporal", "semantic"] = "semantic"
    target_chunk_seconds: float = 180
    min_chunk_seconds: float = 60
    max_chunk_seconds: float = 600
    semantic_fallback: bool = True  # Fall back to temporal when semantic boundaries are rejected
    chunking_model: str = "claude-3-5-haiku-20241022"

    # Retrieval settings
    default_search_limit: int = 5
    similarity_threshold: float = 0.3  # Minimum cosine similarity
    max_context_chunks: int = 10
    max_context_tokens: Optional[int] = 8000  # None disables the token budget

    # LLM settings
    claude_model: str = "claude-sonnet-4-20250514"
    max_response_tokens: int = 1024

    # Custom variables available in all prompts as {{name}}
    prompt_variables: dict[str, str] = Field(default_factory=dict)

    # Batch settings
    max_concurrent: int = 3  # Simultaneous embedding calls during rechunk all

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    @property
    def database_path(self) -> Path:
        """SQLite database shared by the transcript and vector stores."""
        return Path(self.db_path) if self.db_path else Path(self.data_dir) / "lytt.db"

    @property
    def active_embedding_dimensions(self) -> int:
        """Dimensions of the configured embedding provider."""
        if self.embedding_provider == "voyage":
            return self.voyage_embedding_dimensions
        return self.embedding_dimensions

    @property
    def active_embedding_model(self) -> str:
        """Model name of the configured embedding provider."""
        if self.embedding_provider == "voyage":
            return self.voyage_embedding_model
        return self.embedding_model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
