"""
Export indexed chunks as text, JSON or subtitle files.
"""

import json
from enum import Enum
from typing import Sequence

from lytt.rag.chunking.models import Chunk, format_timestamp


class ExportFormat(str, Enum):
    """Supported export formats."""

    TEXT = "text"
    TIMESTAMPED = "timestamped"
    JSON = "json"
    SRT = "srt"
    VTT = "vtt"


def _split_seconds(seconds: float) -> tuple[int, int, int, int]:
    total_ms = int(round(max(seconds, 0) * 1000))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return hours, minutes, secs, millis


def format_srt_timestamp(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS,mmm``."""
    hours, minutes, secs, millis = _split_seconds(seconds)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def format_vtt_timestamp(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS.mmm``."""
    hours, minutes, secs, millis = _split_seconds(seconds)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


def export_chunks(
    media_id: str,
    title: str,
    chunks: Sequence[Chunk],
    export_format: ExportFormat | str = ExportFormat.TEXT,
) -> str:
    """
    Render the chunks of one media item.

    Args:
        media_id: Media item id
        title: Media title
        chunks: Chunks to export (sorted by start time here)
        export_format: Output format

    Returns:
        Formatted document
    """
    export_format = ExportFormat(export_format)
    ordered = sorted(chunks, key=lambda c: c.start_seconds)

    if export_format == ExportFormat.TEXT:
        return "\n\n".join(c.content for c in ordered)

    if export_format == ExportFormat.TIMESTAMPED:
        return "\n\n".join(
            f"[{format_timestamp(c.start_seconds)}] {c.title}\n{c.content}" for c in ordered
        )

    if export_format == ExportFormat.JSON:
        return json.dumps(
            {
                "video_id": media_id,
                "video_title": title,
                "total_duration_seconds": max((c.end_seconds for c in ordered), default=0.0),
                "chunk_count": len(ordered),
                "segments": [
                    {
                        "title": c.title,
                        "text": c.content,
                        "start_seconds": c.start_seconds,
                        "end_seconds": c.end_seconds,
                    }
                    for c in ordered
                ],
            },
            indent=2,
        )

    if export_format == ExportFormat.SRT:
        return "\n".join(
            f"{i}\n{format_srt_timestamp(c.start_seconds)} --> {format_srt_timestamp(c.end_seconds)}\n{c.content}\n"
            for i, c in enumerate(ordered, 1)
        )

    cues = [
        f"{format_vtt_timestamp(c.start_seconds)} --> {format_vtt_timestamp(c.end_seconds)}\n{c.content}\n"
        for c in ordered
    ]
    return "WEBVTT\n\n" + "\n".join(cues)
