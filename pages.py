"""pages.py — XHTML pages (cover, information, chapters, table of contents)."""

import html
import re
from itertools import count

from models import Chapter, NovelMetadata, TocEntry

COVER_PAGE_ID = "cover-page"
INFO_PAGE_ID = "info-page"
TOC_PAGE_ID = "toc-page"

COVER_PAGE_HREF = "cover.xhtml"
INFO_PAGE_HREF = "info.xhtml"
TOC_PAGE_HREF = "toc.xhtml"

MISSING_CONTENT = "Content not found."

TOC_STYLE = """
    body { font-family: sans-serif; line-height: 1.5; }
    h1 { text-align: center; }
    li { margin: 0.5em 0; }"""


class TocBuilder:
    """
    Append-only list of TOC entries for one EPUB run.

    Owns the chapter counter, so ids and file names (ch-1/chap1.xhtml, ...)
    restart for every new builder. Entries must be added in the order
    cover?, info, chapters, toc; that order drives the NCX playOrder.
    """

    def __init__(self):
        self._entries: list[TocEntry] = []
        self._chapter_numbers = count(1)

    @property
    def entries(self) -> tuple[TocEntry, ...]:
        return tuple(self._entries)

    def _add(self, entry: TocEntry) -> TocEntry:
        if any(e.id == entry.id for e in self._entries):
            raise ValueError(f"Duplicate TOC entry id: {entry.id}")
        self._entries.append(entry)
        return entry

    def add_cover(self) -> TocEntry:
        return self._add(TocEntry(COVER_PAGE_ID, COVER_PAGE_HREF, "Cover", is_cover=True))

    def add_info(self) -> TocEntry:
        return self._add(TocEntry(INFO_PAGE_ID, INFO_PAGE_HREF, "Information"))

    def add_chapter(self, title: str) -> TocEntry:
        n = next(self._chapter_numbers)
        return self._add(TocEntry(f"ch-{n}", f"chap{n}.xhtml", title))

    def add_toc(self) -> TocEntry:
        return self._add(TocEntry(TOC_PAGE_ID, TOC_PAGE_HREF, "Table of Contents"))


def reading_order(entries) -> list[TocEntry]:
    """Cover (if any), info, TOC, then chapters in record order."""
    by_id = {e.id: e for e in entries}
    front = [by_id[i] for i in (COVER_PAGE_ID, INFO_PAGE_ID, TOC_PAGE_ID) if i in by_id]
    chapters = [e for e in entries if e.id not in (COVER_PAGE_ID, INFO_PAGE_ID, TOC_PAGE_ID)]
    return front + chapters


def esc(value) -> str:
    return html.escape(str(value), quote=True)


def join_authors(authors) -> str:
    return ", ".join(authors)


def xhtml_document(title: str, body: str, head_extra: str = "", epub_ns: bool = False,
                   body_attrs: str = "") -> str:
    """Wrap an already-rendered body in the XHTML page skeleton. title is escaped here."""
    ns = ' xmlns:epub="http://www.idpf.org/2007/ops"' if epub_ns else ""
    return f"""<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml"{ns}>
<head>
  <title>{esc(title)}</title>
  <meta charset="utf-8"/>{head_extra}
</head>
<body{body_attrs}>
{body}
</body>
</html>
"""


def cover_page(metadata: NovelMetadata, cover_file: str) -> str:
    body = f"""  <img style="height:auto;width:100%;border-radius:5px;" src="{esc(cover_file)}" alt="Cover"/>
  <h1>{esc(metadata.title)}</h1>
  <p><strong>Author:</strong> {esc(join_authors(metadata.author))}</p>"""
    return xhtml_document(metadata.title, body, body_attrs=' style="margin:0; text-align:center;"')


def _optional_rows(metadata: NovelMetadata) -> list[tuple[str, str]]:
    """Labelled info rows for the optional fields that actually have a value."""
    alt_title = metadata.alt_title
    if isinstance(alt_title, (list, tuple)):
        alt_title = ", ".join(a for a in alt_title if a)

    rows = [
        ("Alternative Title", alt_title),
        ("Original Language", metadata.language),
        ("Original Publisher", metadata.original_publisher),
        ("Original Status", metadata.original_status),
        ("Genres", ", ".join(metadata.genres)),
    ]
    return [(label, value) for label, value in rows if value]


def info_page(metadata: NovelMetadata) -> str:
    lines = [
        f"  <h1>{esc(metadata.title)}</h1>",
        f"  <p><strong>Author:</strong> {esc(join_authors(metadata.author))}</p>",
        f"  <p><strong>Status:</strong> {esc(metadata.status)}</p>",
    ]
    for label, value in _optional_rows(metadata):
        lines.append(f"  <p><strong>{label}:</strong> {esc(value)}</p>")
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", metadata.description) if p.strip()]
    if paragraphs:
        lines.append("  <h3>Description</h3>")
        lines.extend(f"  <p>{esc(p)}</p>" for p in paragraphs)
    return xhtml_document("Information", "\n".join(lines))


def normalize_chapter_content(content: str | None) -> str:
    """
    Make scraped chapter HTML acceptable to XHTML readers.

    Only two rewrites are applied: &nbsp; becomes &#160; and bare <br> tags
    become <br />. The rest of the fragment is embedded as given.
    """
    text = content or MISSING_CONTENT
    text = text.replace("&nbsp;", "&#160;")
    return re.sub(r"<br\s*>", "<br />", text, flags=re.IGNORECASE)


def chapter_page(chapter: Chapter) -> str:
    body = f"  <h1>{esc(chapter.title)}</h1>\n  {normalize_chapter_content(chapter.content)}"
    return xhtml_document(chapter.title, body)


def toc_page(entries) -> str:
    items = "\n".join(
        f'      <li><a href="{esc(e.href)}">{esc(e.title)}</a></li>'
        for e in reading_order(entries)
    )
    body = f"""  <h1>Table of Contents</h1>
  <nav epub:type="toc" id="toc">
    <ol>
{items}
    </ol>
  </nav>"""
    head_extra = f'\n  <style type="text/css">{TOC_STYLE}\n  </style>'
    return xhtml_document("Table of Contents", body, head_extra=head_extra, epub_ns=True)
