"""
Transcript store package.

Provides SQLite-based storage for media items and their ordered segments,
the durable input to rechunking.
"""

from lytt.rag.docstore.sqlite_store import SQLiteTranscriptStore

__all__ = [
    "SQLiteTranscriptStore",
]
