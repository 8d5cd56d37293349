#!/usr/bin/env python3
"""
novelpack — Package scraped web novels as EPUB books.

Supported input formats: scraped JSON ({"metadata": ..., "chapters": ...}),
Markdown (.md) manuscripts with front matter
Output format: EPUB 3 (with an EPUB 2 NCX for older readers)

Quick start:
  1. Optionally add NOVELPACK_PROXY_URL to .env (raw-fetch proxy for covers)
  2. python novelpack.py novel.json --dry-run
  3. python novelpack.py novel.json

Metadata from NovelUpdates:
  python novelpack.py novel.json --search
  python novelpack.py novel.json --enrich "https://www.novelupdates.com/series/..."
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Package scraped web novels (JSON, Markdown) as EPUB books",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Dry run — list chapters, nothing is written:
  python novelpack.py novel.json --dry-run
  python novelpack.py manuscript.md --dry-run

  # Build the EPUB into ./output:
  python novelpack.py novel.json

  # Save output to a specific location:
  python novelpack.py novel.json --output ~/Desktop/novel.epub

  # Only the first 10 chapters:
  python novelpack.py novel.json --chapters 1-10

  # Look the title up on NovelUpdates, then fill metadata from a series page:
  python novelpack.py novel.json --search
  python novelpack.py novel.json --enrich "https://www.novelupdates.com/series/..."
        """,
    )
    parser.add_argument("input_path", type=Path, help="Path to a novel JSON or Markdown (.md) file")
    parser.add_argument(
        "--output", type=Path, default=None, metavar="PATH",
        help="Output file path (default: <output-dir>/<Title>.epub)",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=Path("output"), metavar="DIR",
        help="Directory for the finished EPUB (default: ./output)",
    )
    parser.add_argument(
        "--proxy", type=str, default=None, metavar="URL",
        help="Raw-fetch proxy base URL (default: NOVELPACK_PROXY_URL from .env)",
    )
    parser.add_argument(
        "--save-proxy", action="store_true", default=False,
        help="Remember --proxy in .env for future runs",
    )
    parser.add_argument(
        "--no-cover", action="store_true", default=False,
        help="Do not download the cover image",
    )
    parser.add_argument(
        "--chapters", type=str, default=None, metavar="RANGE",
        help="Package only these chapters, e.g. '1-3' or '5'",
    )
    parser.add_argument(
        "--search", action="store_true", default=False,
        help="Search NovelUpdates for the novel's title and list matches",
    )
    parser.add_argument(
        "--enrich", type=str, default=None, metavar="URL",
        help="Fill metadata from a NovelUpdates series page before packaging",
    )
    parser.add_argument(
        "--progress", action="store_true", default=False,
        help="Show a progress bar while chapter pages are generated",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Parse input and list chapters without writing an EPUB",
    )
    return parser.parse_args()


def parse_chapter_range(range_str: str) -> range:
    """Parse '3-7' or '5' into a range (1-indexed, inclusive)."""
    if "-" in range_str:
        start, end = range_str.split("-", 1)
        return range(int(start), int(end) + 1)
    n = int(range_str)
    return range(n, n + 1)


def select_chapters(record, range_str: str):
    """Return a copy of record keeping only the chapters in range_str."""
    chapter_range = parse_chapter_range(range_str)
    chapters = tuple(ch for i, ch in enumerate(record.chapters, start=1) if i in chapter_range)
    return replace(record, chapters=chapters)


def print_chapter_list(record, show_chars: bool = True):
    metadata = record.metadata
    print(f"Title:  {metadata.title}")
    print(f"Author: {', '.join(metadata.author) or 'Unknown'}")
    if metadata.status:
        print(f"Status: {metadata.status}")
    if metadata.cover:
        print(f"Cover:  {metadata.cover}")
    print(f"\nFound {len(record.chapters)} chapters:")
    print("-" * 70)
    total_chars = 0
    for i, ch in enumerate(record.chapters, start=1):
        char_count = len(ch.content or "")
        total_chars += char_count
        if show_chars:
            missing = "" if ch.content else "  (no content)"
            print(f"  {i:3d}. {ch.title[:50]:<50} {char_count:>8} chars{missing}")
        else:
            print(f"  {i:3d}. {ch.title}")
    print("-" * 70)
    if show_chars:
        print(f"  Total: {total_chars:,} chars")
    print()


def save_package(package, output: Path | None, output_dir: Path) -> Path:
    output_file = output or output_dir / package.file_name
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_bytes(package.data)
    return output_file


def main():
    args = parse_args()
    load_dotenv()

    # Lazy imports keep --help fast
    import requests

    from catalog import apply_series_detail, fetch_series_detail, print_candidates, search_catalog
    from epub_builder import EpubGenerator, PackagingError
    from fetcher import ProxyFetcher
    from parsers import NovelRecordError, parse_file
    from proxy_setup import resolve_proxy_url

    print(f"Parsing: {args.input_path}")
    try:
        record = parse_file(args.input_path)
    except (NovelRecordError, ValueError, OSError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    if args.chapters:
        total = len(record.chapters)
        try:
            record = select_chapters(record, args.chapters)
        except ValueError:
            print(f"ERROR: Invalid chapter range '{args.chapters}' (use e.g. '1-3' or '5')")
            sys.exit(1)
        if not record.chapters:
            print(f"ERROR: No chapters matched range '{args.chapters}' (novel has {total} chapters)")
            sys.exit(1)

    fetcher = ProxyFetcher(resolve_proxy_url(args.proxy, save=args.save_proxy))

    if args.search:
        print(f'Fetching NU search for "{record.metadata.title}" ...')
        try:
            candidates = search_catalog(record.metadata.title, fetcher.fetch_text)
        except requests.RequestException as e:
            print(f"ERROR: NU search error: {e}")
            sys.exit(1)
        if candidates:
            print_candidates(candidates)
            print("Re-run with --enrich URL to fill metadata from one of these.")
        else:
            print("No results found on NovelUpdates.")
        return

    if args.enrich:
        print(f"Fetching series details: {args.enrich}")
        try:
            detail = fetch_series_detail(args.enrich, fetcher.fetch_text)
        except requests.RequestException as e:
            print(f"ERROR: Error fetching detailed info: {e}")
            sys.exit(1)
        record = replace(record, metadata=apply_series_detail(record.metadata, detail))
        print(f"  Metadata filled from: {detail.title}")

    if args.no_cover and record.metadata.cover:
        record = replace(record, metadata=replace(record.metadata, cover=None))

    print_chapter_list(record)

    if args.dry_run:
        print("Dry run complete. No EPUB written.")
        return

    generator = EpubGenerator(
        record,
        fetch_bytes=fetcher.fetch_bytes,
        log=lambda msg: print(f"  {msg}"),
        show_progress=args.progress,
    )
    try:
        package = generator.generate()
    except PackagingError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    output_file = save_package(package, args.output, args.output_dir)
    print(f"\nDone! EPUB saved to: {output_file}")
    print(f"Size: {len(package.data) / 1024:.1f} KB")


if __name__ == "__main__":
    main()
