"""
Command line interface for indexing, searching and managing transcripts.

Usage:
    lytt index /path/to/transcript.vtt --title "Talk" [--media-id ID] [--force]
    lytt search "how do bitwise shifts work" --limit 5
    lytt ask "what is two's complement?"
    lytt rechunk all
    lytt list
    lytt export VIDEO_ID --format srt --output talk.srt
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from lytt.config import get_settings
from lytt.errors import LyttError
from lytt.ingestion.export import ExportFormat
from lytt.ingestion.loader import load_transcript_file
from lytt.ingestion.metadata import local_media_id_for_file
from lytt.ingestion.pipeline import ALL_MEDIA
from lytt.rag.chunking.models import MediaItem, format_timestamp
from lytt.services import Services, build_services

logger = logging.getLogger(__name__)


def cmd_index(services: Services, args: argparse.Namespace) -> int:
    filepath = Path(args.filepath)
    if not filepath.exists():
        print(f"Error: File not found: {filepath}")
        return 1

    segments = load_transcript_file(filepath)
    media = MediaItem(
        media_id=args.media_id or local_media_id_for_file(filepath),
        title=args.title or filepath.stem,
        transcription_mode=args.mode,
        source_url=args.url,
    )

    result = services.pipeline.index_transcript(media, segments, force=args.force)
    if result.status == "skipped":
        print(f"Skipped {result.media_id}: already indexed ({result.chunk_count} chunks). Use --force to replace.")
    else:
        print(f"Indexed {result.media_id}: {result.chunk_count} chunks ({result.strategy})")
    return 0


def cmd_search(services: Services, args: argparse.Namespace) -> int:
    results = services.engine.search(args.query, limit=args.limit, min_score=args.min_score)

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return 0

    if not results:
        print("No results found.")
        return 0

    for i, result in enumerate(results, 1):
        print(f"\n[{i}] {result.media_title} @ {result.timestamp} (score: {result.score:.3f})")
        print(f"    {result.chunk_title}")
        if result.url:
            print(f"    {result.url}")
        print(f"    {result.content[:200]}")
    return 0


def cmd_ask(services: Services, args: argparse.Namespace) -> int:
    response = services.engine.ask(args.question, max_chunks=args.max_chunks, min_score=args.min_score)

    if args.json:
        print(json.dumps(response.to_dict(), indent=2))
        return 0

    print(response.answer)
    print("\nSources:")
    for source in response.sources:
        print(f"  - {source.citation} (score: {source.score:.2f})")
    return 0


def cmd_rechunk(services: Services, args: argparse.Namespace) -> int:
    outcomes = services.pipeline.rechunk(args.media_id)

    failed = 0
    for outcome in outcomes:
        if outcome.status == "error":
            failed += 1
            print(f"  {outcome.media_id}: error [{outcome.error_kind}] {outcome.message}")
        else:
            print(f"  {outcome.media_id}: {outcome.status} ({outcome.chunk_count} chunks)")

    print(f"\n{len(outcomes) - failed}/{len(outcomes)} media items rechunked")
    return 1 if failed else 0


def cmd_list(services: Services, args: argparse.Namespace) -> int:
    media = services.list_media()
    if not media:
        print("No media indexed yet.")
        return 0

    for item in media:
        print(
            f"{item.media_id}  {item.title}  "
            f"[{format_timestamp(item.duration_seconds)}, {item.chunk_count} chunks]"
        )
    print(f"\nTotal: {len(media)}")
    return 0


def cmd_show(services: Services, args: argparse.Namespace) -> int:
    print(json.dumps(services.get_media(args.media_id).to_dict(), indent=2))
    return 0


def cmd_delete(services: Services, args: argparse.Namespace) -> int:
    deleted = services.delete_media(args.media_id)
    print(f"Deleted {args.media_id} ({deleted} chunks)")
    return 0


def cmd_export(services: Services, args: argparse.Namespace) -> int:
    content = services.export_media(args.media_id, args.format)
    if args.output and args.output != "-":
        Path(args.output).write_text(content, encoding="utf-8")
        print(f"Exported {args.media_id} to {args.output}")
    else:
        print(content)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lytt", description="Chunking and vector retrieval over transcripts")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    index = subparsers.add_parser("index", help="Index a transcript file (VTT, SRT or JSON)")
    index.add_argument("filepath", type=str, help="Path to transcript file")
    index.add_argument("--media-id", type=str, help="Media id (defaults to a content hash)")
    index.add_argument("--title", type=str, help="Media title (defaults to file name)")
    index.add_argument("--url", type=str, help="Source URL")
    index.add_argument("--mode", type=str, default="whisper", help="Transcription mode tag")
    index.add_argument("--force", action="store_true", help="Replace if already indexed")
    index.set_defaults(handler=cmd_index)

    search = subparsers.add_parser("search", help="Semantic search")
    search.add_argument("query", type=str)
    search.add_argument("--limit", type=int, default=None)
    search.add_argument("--min-score", type=float, default=None)
    search.add_argument("--json", action="store_true", help="Print JSON")
    search.set_defaults(handler=cmd_search)

    ask = subparsers.add_parser("ask", help="Answer a question from indexed content")
    ask.add_argument("question", type=str)
    ask.add_argument("--max-chunks", type=int, default=None)
    ask.add_argument("--min-score", type=float, default=None)
    ask.add_argument("--json", action="store_true", help="Print JSON")
    ask.set_defaults(handler=cmd_ask)

    rechunk = subparsers.add_parser("rechunk", help="Re-derive chunks from stored transcripts")
    rechunk.add_argument("media_id", nargs="?", default=ALL_MEDIA, help="Media id or 'all'")
    rechunk.set_defaults(handler=cmd_rechunk)

    listing = subparsers.add_parser("list", help="List indexed media")
    listing.set_defaults(handler=cmd_list)

    show = subparsers.add_parser("show", help="Show one media item")
    show.add_argument("media_id", type=str)
    show.set_defaults(handler=cmd_show)

    delete = subparsers.add_parser("delete", help="Delete a media item")
    delete.add_argument("media_id", type=str)
    delete.set_defaults(handler=cmd_delete)

    export = subparsers.add_parser("export", help="Export indexed chunks")
    export.add_argument("media_id", type=str)
    export.add_argument(
        "--format",
        choices=[f.value for f in ExportFormat],
        default=ExportFormat.TEXT.value,
    )
    export.add_argument("--output", "-o", type=str, help="Output file (default stdout)")
    export.set_defaults(handler=cmd_export)

    return parser


def main(argv: Optional[Sequence[str]] = None, services: Optional[Services] = None) -> int:
    args = build_parser().parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        services = services or build_services(get_settings())
        return args.handler(services, args)
    except LyttError as e:
        print(f"Error [{e.kind}]: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
