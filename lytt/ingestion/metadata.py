"""
Media identity and link helpers.

YouTube media are identified by their video id. Local files get a
content-derived id with a ``local_`` prefix, so re-importing the same file
maps to the same media item.
"""

import hashlib
from pathlib import Path
from typing import Optional

from lytt.rag.chunking.models import format_timestamp

LOCAL_PREFIX = "local_"
YOUTUBE_WATCH_URL = "https://youtube.com/watch?v={media_id}&t={seconds}s"


def local_media_id(content: bytes) -> str:
    """Derive a stable media id from file content."""
    return f"{LOCAL_PREFIX}{hashlib.sha256(content).hexdigest()[:16]}"


def local_media_id_for_file(path: Path | str, block_size: int = 1 << 20) -> str:
    """Derive a stable media id for a local file without loading it whole."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(block_size), b""):
            digest.update(block)
    return f"{LOCAL_PREFIX}{digest.hexdigest()[:16]}"


def is_local_media(media_id: str) -> bool:
    return media_id.startswith(LOCAL_PREFIX)


def media_url(media_id: str, start_seconds: float = 0.0) -> Optional[str]:
    """
    Deep link into the source at ``start_seconds``.

    Returns:
        YouTube URL with a timestamp, or None for local media
    """
    if is_local_media(media_id):
        return None
    return YOUTUBE_WATCH_URL.format(media_id=media_id, seconds=int(max(start_seconds, 0)))


def format_source_citation(title: str, start_seconds: float, url: Optional[str] = None) -> str:
    """
    Format a readable source citation.

    Returns:
        Citation like ``"Title" @ 03:25 - https://...``
    """
    citation = f'"{title}" @ {format_timestamp(start_seconds)}'
    if url:
        citation += f" - {url}"
    return citation
