"""models.py — Shared data types for novelpack."""

import re
from dataclasses import dataclass, field
from enum import Enum

EPUB_MEDIA_TYPE = "application/epub+zip"


@dataclass(frozen=True)
class NovelMetadata:
    title: str
    author: tuple[str, ...] = ()
    status: str = ""
    alt_title: str | tuple[str, ...] | None = None   # Associated names, one or many
    language: str | None = None                       # Original language, e.g. "Chinese"
    original_publisher: str | None = None
    original_status: str | None = None                # Status in country of origin
    year: str | None = None
    genres: tuple[str, ...] = ()
    description: str = ""
    cover: str | None = None                          # Remote cover image URL


@dataclass(frozen=True)
class Chapter:
    title: str
    content: str | None = None   # Raw XHTML body fragment


@dataclass(frozen=True)
class NovelRecord:
    metadata: NovelMetadata
    chapters: tuple[Chapter, ...] = ()


@dataclass(frozen=True)
class TocEntry:
    id: str
    href: str
    title: str
    is_cover: bool = False


class Compression(Enum):
    STORE = "store"
    DEFLATE = "deflate"


@dataclass(frozen=True)
class ArchiveEntry:
    path: str
    content: bytes | str
    compression: Compression = Compression.DEFLATE

    def as_bytes(self) -> bytes:
        if isinstance(self.content, str):
            return self.content.encode("utf-8")
        return self.content


@dataclass(frozen=True)
class EpubPackage:
    """A finished EPUB held in memory, ready to be saved or sent."""
    data: bytes
    title: str
    media_type: str = EPUB_MEDIA_TYPE

    @property
    def file_name(self) -> str:
        return re.sub(r"[^a-z0-9]", "_", self.title, flags=re.IGNORECASE) + ".epub"


@dataclass(frozen=True)
class CandidateSeries:
    title: str
    url: str
    cover_url: str | None = None
    genres: tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class SeriesDetail:
    title: str
    cover_url: str | None = None
    series_type: str | None = None
    genres: tuple[str, ...] = ()
    authors: tuple[str, ...] = ()
    author_urls: tuple[str, ...] = ()
    year: str | None = None
    original_status: str | None = None
    original_publisher: str | None = None
    english_publisher: str | None = None
    description: str = ""
    associated_names: tuple[str, ...] = ()
    language: str | None = None
    related_series: tuple[CandidateSeries, ...] = field(default_factory=tuple)
