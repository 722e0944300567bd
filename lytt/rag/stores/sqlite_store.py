"""
SQLite-based vector store.

Stores chunks with their embeddings as float64 BLOBs and answers similarity
queries with a full numpy cosine scan. Sized for a personal library of a
few thousand media items on one machine.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Sequence

import numpy as np

from lytt.config import Settings, get_settings
from lytt.errors import DimensionMismatchError, ModelMismatchError, NotFoundError, StorageError
from lytt.rag.chunking.models import Chunk, Embedding, MediaItem, utcnow
from lytt.rag.stores.base import ScoredChunk, VectorStore, cosine_scores, rank, to_vector

logger = logging.getLogger(__name__)

# Serializes writers across every store instance in the process
_WRITE_LOCK = threading.Lock()


class SQLiteVectorStore(VectorStore):
    """
    SQLite vector store.

    Provides:
    - Atomic per-media chunk replacement
    - Cosine similarity search with threshold
    - Indexed media summaries with chunk counts
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        dimensions: int | None = None,
        settings: Optional[Settings] = None,
        embedding_model: Optional[str] = None,
    ):
        """
        Initialize the vector store.

        Args:
            db_path: Path to SQLite database file (defaults to settings)
            dimensions: Embedding dimension (defaults to the active provider's)
            settings: Settings override
            embedding_model: Expected embedding model; None adopts whatever
                the store already records

        Raises:
            DimensionMismatchError: the existing store was created with another dimension
            ModelMismatchError: the existing store holds another model's vectors
        """
        settings = settings or get_settings()
        self.db_path = Path(db_path) if db_path else settings.database_path
        self._dimensions = dimensions or settings.active_embedding_dimensions
        self._embedding_model = embedding_model

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()
        logger.info(f"Vector store ready at {self.db_path} ({self._dimensions} dimensions)")

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def embedding_model(self) -> Optional[str]:
        return self._embedding_model

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for autocommit database connections."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0, isolation_level=None)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Serialized write transaction, rolled back on any failure."""
        with _WRITE_LOCK, self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise

    def _init_db(self) -> None:
        """Initialize database schema and check the stored dimension."""
        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")

        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS store_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS indexed_media (
                    media_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    duration_seconds REAL NOT NULL DEFAULT 0,
                    transcription_mode TEXT NOT NULL DEFAULT 'whisper',
                    source_url TEXT,
                    created_at TEXT NOT NULL,
                    indexed_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS chunks (
                    chunk_id TEXT PRIMARY KEY,
                    media_id TEXT NOT NULL,
                    chunk_index INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    start_seconds REAL NOT NULL,
                    end_seconds REAL NOT NULL,
                    summary TEXT,
                    embedding BLOB NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_chunks_media_id ON chunks(media_id)")

            row = conn.execute(
                "SELECT value FROM store_meta WHERE key = 'dimensions'"
            ).fetchone()
            if row is None:
                conn.execute(
                    "INSERT INTO store_meta (key, value) VALUES ('dimensions', ?)",
                    (str(self._dimensions),),
                )
            elif int(row["value"]) != self._dimensions:
                raise DimensionMismatchError(
                    int(row["value"]), self._dimensions, operation="open_store"
                )

            row = conn.execute(
                "SELECT value FROM store_meta WHERE key = 'embedding_model'"
            ).fetchone()
            if row is None:
                if self._embedding_model:
                    self._record_model(conn, self._embedding_model)
            elif self._embedding_model is None:
                self._embedding_model = row["value"]
            elif row["value"] != self._embedding_model:
                raise ModelMismatchError(
                    row["value"], self._embedding_model, operation="open_store"
                )

    @staticmethod
    def _record_model(conn: sqlite3.Connection, model: str) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO store_meta (key, value) VALUES ('embedding_model', ?)",
            (model,),
        )

    def upsert_media_chunks(
        self,
        media_id: str,
        chunks: Sequence[Chunk],
        embeddings: Sequence[Embedding | Sequence[float]],
        media: Optional[MediaItem] = None,
    ) -> int:
        vectors, model = self._check_batch(media_id, chunks, embeddings)
        now = utcnow().isoformat()
        pin_model = model is not None and self._embedding_model is None

        with self._transaction() as conn:
            if pin_model:
                self._record_model(conn, model)
            conn.execute("DELETE FROM chunks WHERE media_id = ?", (media_id,))
            conn.executemany(
                """
                INSERT INTO chunks (
                    chunk_id, media_id, chunk_index, title, content,
                    start_seconds, end_seconds, summary, embedding
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        chunk.chunk_id,
                        media_id,
                        chunk.index,
                        chunk.title,
                        chunk.content,
                        chunk.start_seconds,
                        chunk.end_seconds,
                        chunk.summary,
                        vector.tobytes(),
                    )
                    for chunk, vector in zip(chunks, vectors)
                ],
            )
            self._write_media_row(conn, media_id, chunks, media, now)

        if pin_model:
            self._embedding_model = model
        logger.info(f"Stored {len(chunks)} chunks for {media_id}")
        return len(chunks)

    def _write_media_row(
        self,
        conn: sqlite3.Connection,
        media_id: str,
        chunks: Sequence[Chunk],
        media: Optional[MediaItem],
        now: str,
    ) -> None:
        if media is not None:
            conn.execute(
                """
                INSERT OR REPLACE INTO indexed_media (
                    media_id, title, duration_seconds, transcription_mode,
                    source_url, created_at, indexed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    media_id,
                    media.title,
                    media.duration_seconds,
                    media.transcription_mode,
                    media.source_url,
                    media.created_at.isoformat(),
                    now,
                ),
            )
            return

        updated = conn.execute(
            "UPDATE indexed_media SET indexed_at = ? WHERE media_id = ?",
            (now, media_id),
        ).rowcount
        if not updated:
            duration = max((c.end_seconds for c in chunks), default=0.0)
            conn.execute(
                """
                INSERT INTO indexed_media (
                    media_id, title, duration_seconds, created_at, indexed_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (media_id, media_id, duration, now, now),
            )

    def search(
        self,
        query_vector: Sequence[float],
        limit: int = 5,
        min_score: float = 0.3,
    ) -> list[ScoredChunk]:
        query = to_vector(query_vector, self._dimensions, operation="search")
        if limit <= 0:
            return []

        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT c.*, m.title AS media_title
                FROM chunks c
                LEFT JOIN indexed_media m ON m.media_id = c.media_id
            """).fetchall()

        if not rows:
            return []

        matrix = np.vstack([np.frombuffer(row["embedding"], dtype=np.float64) for row in rows])
        scores = cosine_scores(matrix, query)

        candidates = (
            ScoredChunk(
                chunk=self._row_to_chunk(row),
                media_title=row["media_title"] or row["media_id"],
                score=float(score),
            )
            for row, score in zip(rows, scores)
            if score >= min_score
        )
        return rank(candidates, limit)

    def list_media(self) -> list[MediaItem]:
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT m.*, COUNT(c.chunk_id) AS chunk_count
                FROM indexed_media m
                LEFT JOIN chunks c ON c.media_id = m.media_id
                GROUP BY m.media_id
                ORDER BY m.indexed_at DESC, m.media_id
            """).fetchall()
        return [self._row_to_media(row) for row in rows]

    def get_media(self, media_id: str) -> Optional[MediaItem]:
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT m.*, COUNT(c.chunk_id) AS chunk_count
                FROM indexed_media m
                LEFT JOIN chunks c ON c.media_id = m.media_id
                WHERE m.media_id = ?
                GROUP BY m.media_id
                """,
                (media_id,),
            ).fetchone()
        return self._row_to_media(row) if row else None

    def delete_media(self, media_id: str) -> int:
        with self._transaction() as conn:
            deleted = conn.execute(
                "DELETE FROM chunks WHERE media_id = ?", (media_id,)
            ).rowcount
            removed = conn.execute(
                "DELETE FROM indexed_media WHERE media_id = ?", (media_id,)
            ).rowcount
            if not deleted and not removed:
                raise NotFoundError(
                    f"Media {media_id} is not indexed",
                    operation="delete",
                    media_id=media_id,
                )

        logger.info(f"Deleted {deleted} chunks for {media_id}")
        return deleted

    def get_chunks(self, media_id: str) -> list[Chunk]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM chunks WHERE media_id = ? ORDER BY chunk_index",
                (media_id,),
            ).fetchall()
        return [self._row_to_chunk(row) for row in rows]

    def count_chunks(self) -> int:
        with self._get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]

    @staticmethod
    def _row_to_chunk(row: sqlite3.Row) -> Chunk:
        return Chunk(
            media_id=row["media_id"],
            index=row["chunk_index"],
            title=row["title"],
            content=row["content"],
            start_seconds=row["start_seconds"],
            end_seconds=row["end_seconds"],
            summary=row["summary"],
        )

    @staticmethod
    def _row_to_media(row: sqlite3.Row) -> MediaItem:
        return MediaItem(
            media_id=row["media_id"],
            title=row["title"],
            duration_seconds=row["duration_seconds"],
            transcription_mode=row["transcription_mode"],
            source_url=row["source_url"],
            created_at=datetime.fromisoformat(row["created_at"]),
            indexed_at=datetime.fromisoformat(row["indexed_at"]),
            chunk_count=row["chunk_count"],
        )
