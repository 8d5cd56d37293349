import io
import xml.etree.ElementTree as ET
import zipfile
from datetime import datetime, timezone

import pytest

from models import Chapter, NovelMetadata, NovelRecord

OPF_NS = "{http://www.idpf.org/2007/opf}"
NCX_NS = "{http://www.daisy.org/z3986/2005/ncx/}"
DC_NS = "{http://purl.org/dc/elements/1.1/}"

BOOK_ID = "urn:uuid:00000000-0000-4000-8000-000000000000"
MODIFIED = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_book():
    return NovelRecord(
        metadata=NovelMetadata(
            title="Test Book",
            author=("A",),
            status="Ongoing",
            genres=(),
            description="d",
        ),
        chapters=(Chapter(title="Ch1", content="Hello"),),
    )


@pytest.fixture
def full_book():
    return NovelRecord(
        metadata=NovelMetadata(
            title="Lord & <Mysteries>",
            author=("Cuttlefish", "Another"),
            status="Completed",
            alt_title=("LOTM", "诡秘之主"),
            language="Chinese",
            original_publisher="Qidian",
            original_status="1430 Chapters (Completed)",
            year="2018",
            genres=("Fantasy", "Mystery"),
            description="Steam & machinery <rise>.",
            cover="https://example.com/cover.jpg",
        ),
        chapters=(
            Chapter(title="Crimson", content="<p>One&nbsp;two<br>three</p>"),
            Chapter(title="Situation", content=None),
            Chapter(title="Melissa", content="<p>Fine</p>"),
        ),
    )


class ListLog:
    """Collects log messages in place of print."""

    def __init__(self):
        self.messages = []

    def __call__(self, msg):
        self.messages.append(msg)


@pytest.fixture
def log():
    return ListLog()


def open_epub(data: bytes) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(data))


def read_xml(zf: zipfile.ZipFile, name: str) -> ET.Element:
    return ET.fromstring(zf.read(name))


def spine_idrefs(opf_root: ET.Element) -> list[str]:
    return [i.get("idref") for i in opf_root.find(f"{OPF_NS}spine").findall(f"{OPF_NS}itemref")]
