"""
Transcript file loading.

Reads WebVTT, SRT and JSON transcripts into ordered segments.
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional

from lytt.errors import ChunkingError
from lytt.rag.chunking.models import Segment

logger = logging.getLogger(__name__)

# Pattern for timestamp line: 00:00:10.400 --> 00:00:12.000
TIMESTAMP_PATTERN = re.compile(r"(\d+:)?(\d+:\d+[.,]\d+)\s*-->\s*(\d+:)?(\d+:\d+[.,]\d+)")


def parse_timestamp(ts: str) -> float:
    """
    Parse a VTT or SRT timestamp to seconds.

    Args:
        ts: Timestamp string like "00:01:23.456", "01:23.456" or "00:01:23,456"

    Returns:
        Seconds as float
    """
    parts = ts.replace(",", ".").split(":")
    if len(parts) == 3:
        hours, mins, secs = parts
        return int(hours) * 3600 + int(mins) * 60 + float(secs)
    elif len(parts) == 2:
        mins, secs = parts
        return int(mins) * 60 + float(secs)
    return 0.0


def parse_cues(content: str) -> list[Segment]:
    """
    Parse WebVTT or SRT cues into segments.

    Multi-line cues become one segment. Rolling captions that overlap the
    previous cue are trimmed to start where it ended; cues left empty by
    that are dropped.

    Args:
        content: Raw caption file content

    Returns:
        Segments in time order
    """
    segments: list[Segment] = []
    cue_start: Optional[float] = None
    cue_end = 0.0
    cue_lines: list[str] = []

    def flush() -> None:
        if cue_start is None or not cue_lines:
            return
        text = re.sub(r"\s+", " ", " ".join(cue_lines)).strip()
        start = cue_start
        if segments and start < segments[-1].end_seconds:
            start = segments[-1].end_seconds
        if text and start < cue_end:
            segments.append(Segment(text=text, start_seconds=start, end_seconds=cue_end))

    for raw in content.splitlines():
        line = raw.strip()

        if line.startswith("WEBVTT") or line.startswith("NOTE"):
            continue

        match = TIMESTAMP_PATTERN.match(line)
        if match:
            flush()
            cue_start = parse_timestamp((match.group(1) or "") + match.group(2))
            cue_end = parse_timestamp((match.group(3) or "") + match.group(4))
            cue_lines = []
            continue

        # Empty line ends a cue; bare digits are SRT/VTT cue numbers
        if not line or line.isdigit():
            continue

        if cue_start is not None:
            # Remove VTT formatting tags like <c> or positioning
            clean_text = re.sub(r"<[^>]+>", "", line).strip()
            if clean_text:
                cue_lines.append(clean_text)

    flush()
    return segments


def parse_json_transcript(content: str) -> list[Segment]:
    """
    Parse a JSON transcript.

    Accepts either a list of segment objects or an object with a
    ``segments`` list, each entry carrying text/start_seconds/end_seconds.
    """
    data = json.loads(content)
    if isinstance(data, dict):
        data = data.get("segments", [])
    return [Segment.from_dict(item) for item in data]


def load_transcript_file(path: Path | str) -> list[Segment]:
    """
    Load segments from a .vtt, .srt or .json transcript file.

    Raises:
        ChunkingError: unsupported or unreadable file
    """
    path = Path(path)
    suffix = path.suffix.lower()
    content = path.read_text(encoding="utf-8")

    if suffix in (".vtt", ".srt"):
        segments = parse_cues(content)
    elif suffix == ".json":
        try:
            segments = parse_json_transcript(content)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise ChunkingError(f"Invalid JSON transcript {path}: {e}", operation="load") from e
    else:
        raise ChunkingError(f"Unsupported transcript format: {path.suffix}", operation="load")

    logger.debug(f"Loaded {len(segments)} segments from {path}")
    return segments
