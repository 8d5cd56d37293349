"""package_docs.py — Structural EPUB documents: container.xml, toc.ncx, content.opf."""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone

from models import EPUB_MEDIA_TYPE, NovelMetadata, TocEntry
from pages import TOC_PAGE_ID, reading_order

CONTAINER_NS = "urn:oasis:names:tc:opendocument:xmlns:container"
NCX_NS = "http://www.daisy.org/z3986/2005/ncx/"
OPF_NS = "http://www.idpf.org/2007/opf"
DC_NS = "http://purl.org/dc/elements/1.1/"

CONTENT_DIR = "OEBPS"
OPF_FILE_NAME = "content.opf"
NCX_FILE_NAME = "toc.ncx"

MIMETYPE_PATH = "mimetype"
MIMETYPE_CONTENT = EPUB_MEDIA_TYPE
CONTAINER_PATH = "META-INF/container.xml"

XHTML_MEDIA_TYPE = "application/xhtml+xml"
NCX_MEDIA_TYPE = "application/x-dtbncx+xml"
OPF_MEDIA_TYPE = "application/oebps-package+xml"

NCX_ID = "ncx"
COVER_IMAGE_ID = "cover-image"


def _serialize(root: ET.Element) -> str:
    ET.indent(root, space="  ")
    return '<?xml version="1.0" encoding="utf-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def _sub(parent: ET.Element, tag: str, text: str | None = None, **attrs) -> ET.Element:
    el = ET.SubElement(parent, tag, attrs)
    if text is not None:
        el.text = text
    return el


def container_xml() -> str:
    root = ET.Element("container", {"version": "1.0", "xmlns": CONTAINER_NS})
    rootfiles = _sub(root, "rootfiles")
    _sub(rootfiles, "rootfile", **{
        "full-path": f"{CONTENT_DIR}/{OPF_FILE_NAME}",
        "media-type": OPF_MEDIA_TYPE,
    })
    return _serialize(root)


def build_ncx(metadata: NovelMetadata, entries: list[TocEntry], book_id: str) -> str:
    """Navigation map: one navPoint per entry, playOrder 1..M in construction order."""
    root = ET.Element("ncx", {"xmlns": NCX_NS, "version": "2005-1"})

    head = _sub(root, "head")
    for name, content in (
        ("dtb:uid", book_id),
        ("dtb:depth", "1"),
        ("dtb:totalPageCount", "0"),
        ("dtb:maxPageNumber", "0"),
    ):
        _sub(head, "meta", name=name, content=content)

    doc_title = _sub(root, "docTitle")
    _sub(doc_title, "text", metadata.title)
    if metadata.author:
        doc_author = _sub(root, "docAuthor")
        _sub(doc_author, "text", ", ".join(metadata.author))

    nav_map = _sub(root, "navMap")
    for play_order, entry in enumerate(entries, start=1):
        nav_point = _sub(nav_map, "navPoint", id=entry.id, playOrder=str(play_order))
        label = _sub(nav_point, "navLabel")
        _sub(label, "text", entry.title)
        _sub(nav_point, "content", src=entry.href)

    return _serialize(root)


def format_modified(moment: datetime | None = None) -> str:
    """dcterms:modified wants UTC with second precision, e.g. 2024-05-01T12:00:00Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_opf(
    metadata: NovelMetadata,
    entries: list[TocEntry],
    cover_file: str | None,
    book_id: str,
    modified: datetime | None = None,
    language: str = "en",
    cover_media_type: str = "image/jpeg",
) -> str:
    """
    Package document: metadata, manifest of every generated file and the spine.

    The spine follows reading_order(): cover page (only with a cover), info,
    TOC, then every chapter.
    """
    root = ET.Element("package", {
        "xmlns": OPF_NS,
        "unique-identifier": "BookId",
        "version": "3.0",
    })

    meta = _sub(root, "metadata", **{"xmlns:dc": DC_NS})
    _sub(meta, "dc:identifier", book_id, id="BookId")
    _sub(meta, "dc:title", metadata.title)
    for author in metadata.author:
        _sub(meta, "dc:creator", author)
    _sub(meta, "dc:language", language)
    for genre in metadata.genres:
        _sub(meta, "dc:subject", genre)
    if metadata.description:
        _sub(meta, "dc:description", metadata.description)
    if metadata.year:
        _sub(meta, "dc:date", metadata.year)
    _sub(meta, "meta", format_modified(modified), property="dcterms:modified")
    if cover_file:
        _sub(meta, "meta", name="cover", content=COVER_IMAGE_ID)

    manifest = _sub(root, "manifest")
    _sub(manifest, "item", id=NCX_ID, href=NCX_FILE_NAME, **{"media-type": NCX_MEDIA_TYPE})
    if cover_file:
        _sub(manifest, "item", id=COVER_IMAGE_ID, href=cover_file, properties="cover-image",
             **{"media-type": cover_media_type})
    for entry in entries:
        attrs = {"id": entry.id, "href": entry.href, "media-type": XHTML_MEDIA_TYPE}
        if entry.id == TOC_PAGE_ID:
            attrs["properties"] = "nav"
        _sub(manifest, "item", **attrs)

    spine = _sub(root, "spine", toc=NCX_ID)
    for entry in reading_order(entries):
        _sub(spine, "itemref", idref=entry.id)

    return _serialize(root)
