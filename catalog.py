#!/usr/bin/env python3
"""
catalog.py — Look up series metadata on NovelUpdates.

Three page types are scraped, all through the same raw-fetch capability used
for covers:

  - the series finder (search results for a title)
  - a series detail page (cover, authors, genres, status, publisher, ...)
  - an author page (the author's other works)

apply_series_detail() merges a detail page into NovelMetadata the way the
auto-fill form did: scraped cover, associated names, year, original status,
language and original publisher replace what the record had; author, genres
and description are only filled in when the record has none.

Usage:
  python catalog.py "Lord of the Mysteries"
  python catalog.py --detail "https://www.novelupdates.com/series/lord-of-the-mysteries/"
"""

import argparse
import re
import sys
from collections.abc import Callable
from dataclasses import replace
from urllib.parse import quote_plus, urljoin

from bs4 import BeautifulSoup

from models import CandidateSeries, NovelMetadata, SeriesDetail

BASE_URL = "https://www.novelupdates.com"
SEARCH_URL = BASE_URL + "/series-finder/?sf=1&sh={query}&sort=sdate&order=desc"
HTML_PARSER = "lxml"

FetchText = Callable[[str], str]


def _text(node) -> str | None:
    if node is None:
        return None
    text = node.get_text(" ", strip=True)
    return text or None


def _link(node, base_url: str) -> str | None:
    if node is None or not node.get("href"):
        return None
    return urljoin(base_url, node["href"])


def _image(node, base_url: str) -> str | None:
    if node is None or not node.get("src"):
        return None
    return urljoin(base_url, node["src"])


def search_url(query: str) -> str:
    return SEARCH_URL.format(query=quote_plus(query))


def _parse_series_box(box, base_url: str) -> CandidateSeries | None:
    """One .search_main_box_nu result (search page or author page)."""
    title_link = box.select_one(".search_title a")
    if title_link is None:
        return None

    desc_node = box.select_one(".testhide") or box.select_one(".search_body_nu")
    description = ""
    if desc_node is not None:
        for toggle in desc_node.select(".morelink, .less"):
            toggle.decompose()
        description = desc_node.get_text(" ", strip=True)

    return CandidateSeries(
        title=title_link.get_text(strip=True) or "No Title",
        url=_link(title_link, base_url) or "",
        cover_url=_image(box.select_one("img"), base_url),
        genres=tuple(a.get_text(strip=True) for a in box.select(".search_genre a")),
        description=description,
    )


def parse_search_results(page_html: str, base_url: str = BASE_URL) -> list[CandidateSeries]:
    soup = BeautifulSoup(page_html, HTML_PARSER)
    results = []
    for box in soup.select(".search_main_box_nu"):
        candidate = _parse_series_box(box, base_url)
        if candidate is not None:
            results.append(candidate)
    return results


def search_catalog(query: str, fetch_text: FetchText) -> list[CandidateSeries]:
    """Search the series finder for query. Returns [] when nothing matches."""
    query = query.strip()
    if not query:
        raise ValueError("Search query is empty")
    return parse_search_results(fetch_text(search_url(query)))


def _split_associated_names(node) -> tuple[str, ...]:
    """#editassociated separates names with <br>; keep each one as an entry."""
    if node is None:
        return ()
    raw = node.decode_contents()
    parts = re.split(r"<br\s*/?>", raw, flags=re.IGNORECASE)
    names = []
    for part in parts:
        name = BeautifulSoup(part, HTML_PARSER).get_text(" ", strip=True)
        if name:
            names.append(name)
    return tuple(names)


def parse_series_detail(page_html: str, base_url: str = BASE_URL) -> SeriesDetail:
    soup = BeautifulSoup(page_html, HTML_PARSER)

    author_links = soup.select("#showauthors a")
    description_paras = [p.get_text(" ", strip=True) for p in soup.select("#editdescription p")]

    related = []
    for a in soup.select("h5.seriesother + div a"):
        title = a.get_text(strip=True)
        url = _link(a, base_url)
        if title and url:
            related.append(CandidateSeries(title=title, url=url))

    return SeriesDetail(
        title=_text(soup.select_one(".seriestitlenu")) or "Title not found",
        cover_url=_image(soup.select_one(".seriesimg img"), base_url),
        series_type=_text(soup.select_one("#showtype a")),
        genres=tuple(a.get_text(strip=True) for a in soup.select("#seriesgenre a")),
        authors=tuple(a.get_text(strip=True) for a in author_links),
        author_urls=tuple(_link(a, base_url) or "" for a in author_links),
        year=_text(soup.select_one("#edityear")),
        original_status=_text(soup.select_one("#editstatus")),
        original_publisher=_text(soup.select_one("#showopublisher a")),
        english_publisher=_text(soup.select_one("#showepublisher span")),
        description="\n\n".join(p for p in description_paras if p),
        associated_names=_split_associated_names(soup.select_one("#editassociated")),
        language=_text(soup.select_one("#showlang a")),
        related_series=tuple(related),
    )


def fetch_series_detail(url: str, fetch_text: FetchText) -> SeriesDetail:
    return parse_series_detail(fetch_text(url), base_url=url)


def fetch_author_works(author_url: str, fetch_text: FetchText) -> list[CandidateSeries]:
    """Other series listed on an author's page."""
    return parse_search_results(fetch_text(author_url), base_url=author_url)


def apply_series_detail(metadata: NovelMetadata, detail: SeriesDetail) -> NovelMetadata:
    """Return a copy of metadata auto-filled from a series detail page."""
    updates = {}

    if detail.cover_url:
        updates["cover"] = detail.cover_url
    if detail.associated_names:
        updates["alt_title"] = detail.associated_names
    if detail.year:
        updates["year"] = detail.year
    if detail.original_status:
        updates["original_status"] = detail.original_status
    if detail.language:
        updates["language"] = detail.language
    if detail.original_publisher:
        updates["original_publisher"] = detail.original_publisher

    if not metadata.author and detail.authors:
        updates["author"] = detail.authors
    if not metadata.genres and detail.genres:
        updates["genres"] = detail.genres
    if not metadata.description and detail.description:
        updates["description"] = detail.description

    return replace(metadata, **updates)


def print_candidates(candidates: list[CandidateSeries]) -> None:
    print(f"\nFound {len(candidates)} series:")
    print("-" * 70)
    for i, c in enumerate(candidates, start=1):
        genres = ", ".join(c.genres) or "No genres"
        print(f"  {i:2d}. {c.title}")
        print(f"      {c.url}")
        print(f"      {genres}")
    print("-" * 70)


def print_detail(detail: SeriesDetail) -> None:
    rows = [
        ("Title", detail.title),
        ("Type", detail.series_type),
        ("Author(s)", ", ".join(detail.authors)),
        ("Genres", ", ".join(detail.genres)),
        ("Year", detail.year),
        ("Status in COO", detail.original_status),
        ("Original Publisher", detail.original_publisher),
        ("English Publisher", detail.english_publisher),
        ("Language", detail.language),
        ("Associated Names", ", ".join(detail.associated_names)),
        ("Cover", detail.cover_url),
    ]
    for label, value in rows:
        if value:
            print(f"  {label + ':':<20} {value}")
    if detail.description:
        print(f"\n  {detail.description}\n")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search NovelUpdates and show series metadata")
    parser.add_argument("query", nargs="?", help="Title to search for")
    parser.add_argument("--detail", metavar="URL", help="Show a series detail page instead of searching")
    parser.add_argument("--author-works", action="store_true",
                        help="With --detail, also list the first author's other works")
    parser.add_argument("--proxy", metavar="URL", default=None,
                        help="Raw-fetch proxy base URL (default: NOVELPACK_PROXY_URL from .env)")
    args = parser.parse_args()
    if not args.query and not args.detail:
        parser.error("give a search query or --detail URL")
    return args


def main():
    import requests

    from fetcher import ProxyFetcher
    from proxy_setup import resolve_proxy_url

    args = parse_args()
    fetcher = ProxyFetcher(resolve_proxy_url(args.proxy))

    try:
        if args.detail:
            detail = fetch_series_detail(args.detail, fetcher.fetch_text)
            print_detail(detail)
            if args.author_works and detail.author_urls and detail.author_urls[0]:
                print(f"Fetching author works from: {detail.author_urls[0]}")
                works = fetch_author_works(detail.author_urls[0], fetcher.fetch_text)
                if works:
                    print_candidates(works)
                else:
                    print("No other works found for this author.")
        else:
            print(f'Fetching NU search for "{args.query}" ...')
            candidates = search_catalog(args.query, fetcher.fetch_text)
            if candidates:
                print_candidates(candidates)
            else:
                print("No results found on NovelUpdates.")
    except requests.RequestException as e:
        print(f"ERROR: NovelUpdates request failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
