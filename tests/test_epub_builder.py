import zipfile
from dataclasses import replace

import pytest

import epub_builder
from conftest import BOOK_ID, MODIFIED, NCX_NS, open_epub, read_xml, spine_idrefs
from epub_builder import EpubGenerator, PackagingError, PipelineState, generate_epub, write_archive
from models import ArchiveEntry, Chapter, Compression, NovelMetadata, NovelRecord
from parsers import NovelRecordError


def _generate(record, log, fetch_bytes=None):
    return EpubGenerator(record, fetch_bytes=fetch_bytes, log=log,
                         book_id=BOOK_ID, modified=MODIFIED).generate()


def test_no_cover_scenario(test_book, log):
    package = _generate(test_book, log)

    assert package.media_type == "application/epub+zip"
    assert package.file_name == "Test_Book.epub"

    zf = open_epub(package.data)
    names = zf.namelist()
    assert names == [
        "mimetype",
        "META-INF/container.xml",
        "OEBPS/info.xhtml",
        "OEBPS/chap1.xhtml",
        "OEBPS/toc.xhtml",
        "OEBPS/toc.ncx",
        "OEBPS/content.opf",
    ]
    assert spine_idrefs(read_xml(zf, "OEBPS/content.opf")) == ["info-page", "toc-page", "ch-1"]

    info = zf.read("OEBPS/info.xhtml").decode("utf-8")
    for label in ("Alternative Title", "Original Language", "Original Publisher"):
        assert label not in info
    assert "Hello" in zf.read("OEBPS/chap1.xhtml").decode("utf-8")
    assert log.messages == ["Processing chapters for EPUB...", "Generating EPUB file, please wait..."]


def test_mimetype_first_and_stored(full_book, log):
    package = _generate(full_book, log, fetch_bytes=lambda url: b"\xff\xd8cover")
    zf = open_epub(package.data)
    infos = zf.infolist()

    assert infos[0].filename == "mimetype"
    assert infos[0].compress_type == zipfile.ZIP_STORED
    assert zf.read("mimetype") == b"application/epub+zip"
    assert all(i.compress_type == zipfile.ZIP_DEFLATED for i in infos[1:])
    assert package.data[30:38] == b"mimetype"


def test_with_cover(full_book, log):
    package = _generate(full_book, log, fetch_bytes=lambda url: b"\xff\xd8cover")
    zf = open_epub(package.data)

    assert zf.read("OEBPS/cover.jpg") == b"\xff\xd8cover"
    assert "OEBPS/cover.xhtml" in zf.namelist()

    opf = read_xml(zf, "OEBPS/content.opf")
    assert spine_idrefs(opf) == ["cover-page", "info-page", "toc-page", "ch-1", "ch-2", "ch-3"]

    ncx = read_xml(zf, "OEBPS/toc.ncx")
    nav_points = ncx.find(f"{NCX_NS}navMap").findall(f"{NCX_NS}navPoint")
    assert [np.get("id") for np in nav_points] == ["cover-page", "info-page", "ch-1", "ch-2", "ch-3", "toc-page"]
    assert [np.get("playOrder") for np in nav_points] == ["1", "2", "3", "4", "5", "6"]

    chap1 = zf.read("OEBPS/chap1.xhtml").decode("utf-8")
    assert "<p>One&#160;two<br />three</p>" in chap1
    chap2 = zf.read("OEBPS/chap2.xhtml").decode("utf-8")
    assert "Content not found." in chap2


def test_cover_failure_matches_no_cover_output(test_book, log):
    plain = _generate(test_book, [].append)

    with_cover_url = NovelRecord(
        metadata=replace(test_book.metadata, cover="https://example.com/c.jpg"),
        chapters=test_book.chapters,
    )

    def boom(url):
        raise OSError("proxy unreachable")

    degraded = _generate(with_cover_url, log, fetch_bytes=boom)

    assert log.messages[0] == "Cover skipped: proxy unreachable"
    plain_zf, degraded_zf = open_epub(plain.data), open_epub(degraded.data)
    assert plain_zf.namelist() == degraded_zf.namelist()
    for name in plain_zf.namelist():
        assert plain_zf.read(name) == degraded_zf.read(name), name


def test_zero_chapters(log):
    record = NovelRecord(metadata=NovelMetadata(title="Empty"))
    zf = open_epub(_generate(record, log).data)

    assert spine_idrefs(read_xml(zf, "OEBPS/content.opf")) == ["info-page", "toc-page"]
    toc = zf.read("OEBPS/toc.xhtml").decode("utf-8")
    assert 'href="info.xhtml"' in toc
    assert 'href="toc.xhtml"' in toc
    assert "chap" not in toc


@pytest.mark.parametrize("chapters", [0, 1, 5])
def test_spine_size(chapters, log):
    record = NovelRecord(
        metadata=NovelMetadata(title="Sized"),
        chapters=tuple(Chapter(title=f"C{i}", content="x") for i in range(chapters)),
    )
    zf = open_epub(_generate(record, log).data)
    assert len(spine_idrefs(read_xml(zf, "OEBPS/content.opf"))) == chapters + 2


def test_state_transitions_to_done(test_book, log):
    generator = EpubGenerator(test_book, log=log)
    assert generator.state is PipelineState.INIT
    generator.generate()
    assert generator.state is PipelineState.DONE
    with pytest.raises(RuntimeError, match="already ran"):
        generator.generate()


def test_archive_failure_is_fatal(test_book, log, monkeypatch):
    def fail(entries):
        raise PackagingError("disk full")

    monkeypatch.setattr(epub_builder, "write_archive", fail)
    generator = EpubGenerator(test_book, log=log)
    with pytest.raises(PackagingError, match="disk full"):
        generator.generate()
    assert generator.state is PipelineState.FAILED


def test_invalid_record_rejected():
    with pytest.raises(NovelRecordError):
        EpubGenerator({"metadata": {"title": "T"}})
    with pytest.raises(NovelRecordError, match="title"):
        EpubGenerator(NovelRecord(metadata=NovelMetadata(title="  ")))


def test_write_archive_requires_stored_mimetype_first():
    with pytest.raises(PackagingError, match="First archive entry"):
        write_archive([ArchiveEntry("OEBPS/a.xhtml", "x")])
    with pytest.raises(PackagingError, match="First archive entry"):
        write_archive([ArchiveEntry("mimetype", "application/epub+zip", Compression.DEFLATE)])


def test_write_archive_rejects_duplicates_and_extra_stored_entries():
    mimetype = ArchiveEntry("mimetype", "application/epub+zip", Compression.STORE)
    with pytest.raises(PackagingError, match="Duplicate"):
        write_archive([mimetype, ArchiveEntry("a", "1"), ArchiveEntry("a", "2")])
    with pytest.raises(PackagingError, match="uncompressed"):
        write_archive([mimetype, ArchiveEntry("a", "1", Compression.STORE)])


def test_generate_epub_wrapper(test_book):
    messages = []
    package = generate_epub(test_book, log=messages.append)
    assert open_epub(package.data).testzip() is None
    assert "Processing chapters for EPUB..." in messages


@pytest.mark.parametrize("record, reason", [
    (NovelRecord(metadata=None), "no metadata"),
    (NovelRecord(metadata=NovelMetadata(title="T", author="Alice")), "'author' must be a tuple"),
    (NovelRecord(metadata=NovelMetadata(title="T", genres=["Drama"])), "'genres' must be a tuple"),
    (NovelRecord(metadata=NovelMetadata(title="T", alt_title=["Other"])), "'alt_title'"),
    (NovelRecord(metadata=NovelMetadata(title="T"), chapters=[Chapter("c")]), "'chapters' must be a tuple"),
    (NovelRecord(metadata=NovelMetadata(title="T"), chapters=("text",)), "Chapter 1 is not a Chapter"),
    (NovelRecord(metadata=NovelMetadata(title="T"), chapters=(Chapter("ok"), Chapter("c", content=123))),
     "Chapter 2 content must be a string"),
])
def test_malformed_record_rejected_before_any_work(record, reason, log):
    with pytest.raises(NovelRecordError, match=reason):
        EpubGenerator(record, log=log)
    assert log.messages == []


def test_write_archive_wraps_entry_write_errors():
    entries = [
        ArchiveEntry("mimetype", "application/epub+zip", Compression.STORE),
        ArchiveEntry("OEBPS/broken.bin", 12345),
    ]
    with pytest.raises(PackagingError, match="Failed to write EPUB archive"):
        write_archive(entries)


class BrokenEntryGenerator(EpubGenerator):
    """Adds an entry the zip writer cannot serialize."""

    def _synthesize(self, cover):
        return super()._synthesize(cover) + [ArchiveEntry("OEBPS/broken.bin", 12345)]


def test_serialization_failure_moves_to_failed(test_book, log):
    generator = BrokenEntryGenerator(test_book, log=log)
    with pytest.raises(PackagingError):
        generator.generate()
    assert generator.state is PipelineState.FAILED
    assert log.messages[-1] == "Generating EPUB file, please wait..."
