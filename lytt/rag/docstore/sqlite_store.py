"""
SQLite-based transcript store.

Keeps media metadata and the ordered segments produced by transcription.
The stored segments are the source of truth for rechunking, so re-deriving
chunks never needs the audio again.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Sequence

from lytt.config import Settings, get_settings
from lytt.errors import NoStoredTranscriptError, NotFoundError, StorageError
from lytt.rag.chunking.models import MediaItem, Segment

logger = logging.getLogger(__name__)


class SQLiteTranscriptStore:
    """
    SQLite-based transcript store.

    Provides:
    - Replace-in-place storage of a media item and its segments
    - Segment retrieval for rechunking
    - Listing and deletion for management
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the transcript store.

        Args:
            db_path: Path to SQLite database file (defaults to settings)
            settings: Settings override
        """
        settings = settings or get_settings()
        self.db_path = Path(db_path) if db_path else settings.database_path

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Initialize database schema
        self._init_db()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"SQLite error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS media_items (
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
                CREATE TABLE IF NOT EXISTS segments (
                    media_id TEXT NOT NULL,
                    segment_index INTEGER NOT NULL,
                    text TEXT NOT NULL,
                    start_seconds REAL NOT NULL,
                    end_seconds REAL NOT NULL,
                    PRIMARY KEY (media_id, segment_index)
                )
            """)

    def save_transcript(self, media: MediaItem, segments: Sequence[Segment]) -> int:
        """
        Store a media item and its segments, replacing any previous copy.

        Args:
            media: Media metadata
            segments: Ordered transcript segments

        Returns:
            Number of segments stored
        """
        with self._get_connection() as conn:
            conn.execute("DELETE FROM segments WHERE media_id = ?", (media.media_id,))
            conn.execute("""
                INSERT OR REPLACE INTO media_items (
                    media_id, title, duration_seconds, transcription_mode,
                    source_url, created_at, indexed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                media.media_id,
                media.title,
                media.duration_seconds,
                media.transcription_mode,
                media.source_url,
                media.created_at.isoformat(),
                media.indexed_at.isoformat(),
            ))
            conn.executemany("""
                INSERT INTO segments (
                    media_id, segment_index, text, start_seconds, end_seconds
                ) VALUES (?, ?, ?, ?, ?)
            """, [
                (media.media_id, i, seg.text, seg.start_seconds, seg.end_seconds)
                for i, seg in enumerate(segments)
            ])

        logger.info(f"Stored transcript for {media.media_id} ({len(segments)} segments)")
        return len(segments)

    def get_media(self, media_id: str) -> Optional[MediaItem]:
        """
        Retrieve a media item by ID.

        Returns:
            MediaItem if found, None otherwise
        """
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT * FROM media_items WHERE media_id = ?
            """, (media_id,)).fetchone()

            if row is None:
                return None

            return self._row_to_media(row)

    def list_media(self) -> list[MediaItem]:
        """List all media items with a stored transcript, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT * FROM media_items ORDER BY indexed_at DESC, media_id
            """).fetchall()

            return [self._row_to_media(row) for row in rows]

    def has_transcript(self, media_id: str) -> bool:
        """Check if segments are stored for a media item."""
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT 1 FROM segments WHERE media_id = ? LIMIT 1
            """, (media_id,)).fetchone()
            return row is not None

    def get_segments(self, media_id: str) -> list[Segment]:
        """
        Get the stored transcript of a media item.

        Returns:
            Segments in time order

        Raises:
            NoStoredTranscriptError: nothing stored for this media item
        """
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT text, start_seconds, end_seconds FROM segments
                WHERE media_id = ?
                ORDER BY segment_index
            """, (media_id,)).fetchall()

        if not rows:
            raise NoStoredTranscriptError(
                f"No stored transcript for {media_id}",
                operation="get_segments",
                media_id=media_id,
            )

        return [
            Segment(
                text=row["text"],
                start_seconds=row["start_seconds"],
                end_seconds=row["end_seconds"],
            )
            for row in rows
        ]

    def delete_media(self, media_id: str) -> int:
        """
        Delete a media item and its segments.

        Returns:
            Number of segments deleted

        Raises:
            NotFoundError: media item unknown
        """
        with self._get_connection() as conn:
            deleted = conn.execute("""
                DELETE FROM segments WHERE media_id = ?
            """, (media_id,)).rowcount
            removed = conn.execute("""
                DELETE FROM media_items WHERE media_id = ?
            """, (media_id,)).rowcount

            if not deleted and not removed:
                raise NotFoundError(
                    f"No transcript stored for {media_id}",
                    operation="delete",
                    media_id=media_id,
                )

        return deleted

    def get_stats(self) -> dict:
        """
        Get statistics about the transcript store.

        Returns:
            Dict with counts
        """
        with self._get_connection() as conn:
            media = conn.execute("SELECT COUNT(*) FROM media_items").fetchone()[0]
            segments = conn.execute("SELECT COUNT(*) FROM segments").fetchone()[0]
            total_seconds = conn.execute(
                "SELECT SUM(duration_seconds) FROM media_items"
            ).fetchone()[0] or 0.0

            return {
                "media_items": media,
                "segments": segments,
                "total_duration_seconds": total_seconds,
            }

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
        )
