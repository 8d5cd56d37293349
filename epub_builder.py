"""epub_builder.py — Assemble a novel record into an EPUB archive held in memory."""

import io
import uuid
import zipfile
from collections.abc import Callable
from datetime import datetime
from enum import Enum

from tqdm import tqdm

from cover import ResolvedCover, resolve_cover
from models import ArchiveEntry, Compression, EpubPackage, NovelRecord
from package_docs import (
    CONTAINER_PATH,
    CONTENT_DIR,
    MIMETYPE_CONTENT,
    MIMETYPE_PATH,
    NCX_FILE_NAME,
    OPF_FILE_NAME,
    build_ncx,
    build_opf,
    container_xml,
)
from pages import TocBuilder, chapter_page, cover_page, info_page, toc_page
from parsers.base import validate_record

COMPRESSION_LEVEL = 9

ZIP_MODES = {
    Compression.STORE: zipfile.ZIP_STORED,
    Compression.DEFLATE: zipfile.ZIP_DEFLATED,
}


class PackagingError(RuntimeError):
    """Raised when the archive cannot be written. No partial EPUB is returned."""


class PipelineState(Enum):
    INIT = "init"
    META_WRITTEN = "meta_written"
    COVER_RESOLVED = "cover_resolved"
    DOCS_SYNTHESIZED = "docs_synthesized"
    ARCHIVED = "archived"
    DONE = "done"
    FAILED = "failed"


def _validate_entries(entries: list[ArchiveEntry]) -> None:
    if not entries:
        raise PackagingError("Archive has no entries")
    first = entries[0]
    if first.path != MIMETYPE_PATH or first.compression is not Compression.STORE:
        raise PackagingError(f"First archive entry must be a stored '{MIMETYPE_PATH}', got '{first.path}'")

    seen = set()
    for entry in entries:
        if entry.path in seen:
            raise PackagingError(f"Duplicate archive path: {entry.path}")
        seen.add(entry.path)
        if entry is not first and entry.compression is not Compression.DEFLATE:
            raise PackagingError(f"Only '{MIMETYPE_PATH}' may be stored uncompressed: {entry.path}")


def write_archive(entries: list[ArchiveEntry]) -> bytes:
    """
    Write entries, in order, into a zip held in memory.

    The mimetype entry must come first and be stored; everything else is
    deflated at level 9. Any failure raises PackagingError.
    """
    _validate_entries(entries)

    buf = io.BytesIO()
    try:
        with zipfile.ZipFile(buf, "w") as zf:
            for entry in entries:
                mode = ZIP_MODES[entry.compression]
                zf.writestr(
                    entry.path,
                    entry.as_bytes(),
                    compress_type=mode,
                    compresslevel=COMPRESSION_LEVEL if mode == zipfile.ZIP_DEFLATED else None,
                )
    except (OSError, ValueError, TypeError, zipfile.LargeZipFile) as e:
        raise PackagingError(f"Failed to write EPUB archive: {e}") from e

    return buf.getvalue()


class EpubGenerator:
    """
    One-shot pipeline turning a NovelRecord into an EpubPackage.

    States advance INIT → META_WRITTEN → COVER_RESOLVED → DOCS_SYNTHESIZED →
    ARCHIVED → DONE. Only archive serialization can end in FAILED; a failed
    cover download just means a book without a cover.
    """

    def __init__(
        self,
        record: NovelRecord,
        fetch_bytes: Callable[[str], bytes] | None = None,
        log: Callable[[str], None] = print,
        book_id: str | None = None,
        modified: datetime | None = None,
        language: str = "en",
        show_progress: bool = False,
    ):
        validate_record(record)

        self.record = record
        self.fetch_bytes = fetch_bytes
        self.log = log
        self.book_id = book_id or f"urn:uuid:{uuid.uuid4()}"
        self.modified = modified
        self.language = language
        self.show_progress = show_progress
        self.state = PipelineState.INIT

    def _content(self, name: str, content: bytes | str) -> ArchiveEntry:
        return ArchiveEntry(f"{CONTENT_DIR}/{name}", content, Compression.DEFLATE)

    def _synthesize(self, cover: ResolvedCover | None) -> list[ArchiveEntry]:
        metadata = self.record.metadata
        toc = TocBuilder()
        entries = []

        if cover:
            entries.append(self._content(cover.file_name, cover.data))
            entry = toc.add_cover()
            entries.append(self._content(entry.href, cover_page(metadata, cover.file_name)))

        entry = toc.add_info()
        entries.append(self._content(entry.href, info_page(metadata)))

        self.log("Processing chapters for EPUB...")
        chapters = tqdm(
            self.record.chapters, desc="  Chapters", unit="ch",
            disable=not self.show_progress,
        )
        for chapter in chapters:
            entry = toc.add_chapter(chapter.title)
            entries.append(self._content(entry.href, chapter_page(chapter)))

        entry = toc.add_toc()
        toc_entries = list(toc.entries)
        entries.append(self._content(entry.href, toc_page(toc_entries)))

        entries.append(self._content(NCX_FILE_NAME, build_ncx(metadata, toc_entries, self.book_id)))
        entries.append(self._content(OPF_FILE_NAME, build_opf(
            metadata,
            toc_entries,
            cover.file_name if cover else None,
            self.book_id,
            modified=self.modified,
            language=self.language,
            cover_media_type=cover.media_type if cover else "image/jpeg",
        )))
        return entries

    def generate(self) -> EpubPackage:
        if self.state is not PipelineState.INIT:
            raise RuntimeError(f"EpubGenerator already ran (state: {self.state.value})")

        entries = [
            ArchiveEntry(MIMETYPE_PATH, MIMETYPE_CONTENT, Compression.STORE),
            ArchiveEntry(CONTAINER_PATH, container_xml(), Compression.DEFLATE),
        ]
        self.state = PipelineState.META_WRITTEN

        cover = resolve_cover(self.record.metadata.cover, self.fetch_bytes, self.log)
        self.state = PipelineState.COVER_RESOLVED

        entries.extend(self._synthesize(cover))
        self.state = PipelineState.DOCS_SYNTHESIZED

        self.state = PipelineState.ARCHIVED
        self.log("Generating EPUB file, please wait...")
        try:
            data = write_archive(entries)
        except Exception:
            self.state = PipelineState.FAILED
            raise

        self.state = PipelineState.DONE
        return EpubPackage(data=data, title=self.record.metadata.title)


def generate_epub(record: NovelRecord, fetch_bytes=None, log=print, **kwargs) -> EpubPackage:
    """Convenience wrapper: build and run a single EpubGenerator."""
    return EpubGenerator(record, fetch_bytes=fetch_bytes, log=log, **kwargs).generate()
