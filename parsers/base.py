"""parsers/base.py — Record validation and shared text helpers."""

import html
import re
from collections.abc import Mapping

from models import Chapter, NovelMetadata, NovelRecord

# Keys used by the original scraper payloads, mapped onto NovelMetadata fields
METADATA_ALIASES = {
    "altitile": "alt_title",
    "altTitle": "alt_title",
    "statuscoo": "original_status",
    "originalStatus": "original_status",
    "originalPublisher": "original_publisher",
}


class NovelRecordError(ValueError):
    """Raised when a novel record is missing required data or is malformed."""


def _as_tuple(value, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip() for v in value if str(v).strip())
    raise NovelRecordError(f"'{field_name}' must be a string or a list of strings, got {type(value).__name__}")


def _optional_str(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def metadata_from_dict(data) -> NovelMetadata:
    """Build NovelMetadata from a scraper-style mapping."""
    if not isinstance(data, Mapping):
        raise NovelRecordError("Novel record has no metadata object")

    fields = {METADATA_ALIASES.get(k, k): v for k, v in data.items()}

    title = fields.get("title")
    if not isinstance(title, str) or not title.strip():
        raise NovelRecordError("Novel metadata is missing a title")

    alt_title = fields.get("alt_title")
    if isinstance(alt_title, (list, tuple)):
        alt_title = _as_tuple(alt_title, "alt_title") or None
    else:
        alt_title = _optional_str(alt_title)

    return NovelMetadata(
        title=title.strip(),
        author=_as_tuple(fields.get("author"), "author"),
        status=_optional_str(fields.get("status")) or "",
        alt_title=alt_title,
        language=_optional_str(fields.get("language")),
        original_publisher=_optional_str(fields.get("original_publisher")),
        original_status=_optional_str(fields.get("original_status")),
        year=_optional_str(fields.get("year") or fields.get("date")),
        genres=_as_tuple(fields.get("genres"), "genres"),
        description=_optional_str(fields.get("description")) or "",
        cover=_optional_str(fields.get("cover")),
    )


def record_from_dict(data) -> NovelRecord:
    """
    Validate a {"metadata": {...}, "chapters": [...]} payload into a NovelRecord.
    Chapter order is kept exactly as given.
    """
    if not isinstance(data, Mapping):
        raise NovelRecordError(f"Novel record must be an object, got {type(data).__name__}")

    metadata = metadata_from_dict(data.get("metadata"))

    raw_chapters = data.get("chapters") or []
    if not isinstance(raw_chapters, (list, tuple)):
        raise NovelRecordError("'chapters' must be a list")

    chapters = []
    for i, raw in enumerate(raw_chapters, start=1):
        if not isinstance(raw, Mapping):
            raise NovelRecordError(f"Chapter {i} is not an object")
        title = _optional_str(raw.get("title")) or f"Chapter {i}"
        content = raw.get("content")
        if content is not None and not isinstance(content, str):
            raise NovelRecordError(f"Chapter {i} content must be a string")
        chapters.append(Chapter(title=title, content=content))

    return NovelRecord(metadata=metadata, chapters=tuple(chapters))


def _is_str_tuple(value) -> bool:
    return isinstance(value, tuple) and all(isinstance(v, str) for v in value)


def validate_record(record) -> None:
    """
    Check a NovelRecord built in code before it is packaged.

    Records from record_from_dict() always pass; this catches hand-built ones
    with the wrong shapes (a bare string for author, non-string chapter content)
    that would otherwise fail halfway through synthesis.
    """
    if not isinstance(record, NovelRecord):
        raise NovelRecordError(f"Expected a NovelRecord, got {type(record).__name__}")

    metadata = record.metadata
    if not isinstance(metadata, NovelMetadata):
        raise NovelRecordError("Novel record has no metadata object")
    if not isinstance(metadata.title, str) or not metadata.title.strip():
        raise NovelRecordError("Novel metadata is missing a title")

    for name in ("author", "genres"):
        if not _is_str_tuple(getattr(metadata, name)):
            raise NovelRecordError(f"'{name}' must be a tuple of strings")
    if metadata.alt_title is not None and not (
        isinstance(metadata.alt_title, str) or _is_str_tuple(metadata.alt_title)
    ):
        raise NovelRecordError("'alt_title' must be a string or a tuple of strings")
    for name in ("status", "description"):
        if not isinstance(getattr(metadata, name), str):
            raise NovelRecordError(f"'{name}' must be a string")
    for name in ("language", "original_publisher", "original_status", "year", "cover"):
        value = getattr(metadata, name)
        if value is not None and not isinstance(value, str):
            raise NovelRecordError(f"'{name}' must be a string or None")

    if not isinstance(record.chapters, tuple):
        raise NovelRecordError("'chapters' must be a tuple")
    for i, chapter in enumerate(record.chapters, start=1):
        if not isinstance(chapter, Chapter):
            raise NovelRecordError(f"Chapter {i} is not a Chapter")
        if not isinstance(chapter.title, str):
            raise NovelRecordError(f"Chapter {i} title must be a string")
        if chapter.content is not None and not isinstance(chapter.content, str):
            raise NovelRecordError(f"Chapter {i} content must be a string")


def text_to_html(text: str) -> str:
    """Render plain text as escaped <p> paragraphs with simple emphasis."""
    paragraphs = []
    for para in re.split(r"\n\s*\n", text.strip()):
        para = para.strip()
        if not para:
            continue
        s = html.escape(para)
        s = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", s)
        s = re.sub(r"\*(.+?)\*", r"<em>\1</em>", s)
        s = re.sub(r"[ \t]*\n[ \t]*", "<br />", s)
        paragraphs.append(f"<p>{s}</p>")
    return "\n".join(paragraphs)
