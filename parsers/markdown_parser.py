"""parsers/markdown_parser.py — Parse a hand-written Markdown manuscript into a novel record."""

import re
from pathlib import Path

from models import Chapter, NovelRecord
from parsers.base import metadata_from_dict, text_to_html

LIST_FIELDS = {"author", "genres", "alt_title"}


def _extract_frontmatter(content: str) -> tuple[dict, str]:
    """Extract YAML frontmatter (--- delimited) if present. Returns (meta, body)."""
    m = re.match(r"^---\s*\n(.*?)\n---\s*\n", content, re.DOTALL)
    if not m:
        return {}, content
    meta = {}
    for line in m.group(1).split("\n"):
        if ":" in line:
            key, _, value = line.partition(":")
            key = key.strip().lower()
            value = value.strip().strip("\"'")
            if key in LIST_FIELDS:
                meta[key] = [v.strip() for v in value.split(",") if v.strip()]
            else:
                meta[key] = value
    return meta, content[m.end():]


def _split_by_headings(content: str) -> list[tuple[str, str]]:
    """
    Split markdown by # or ## headings.
    Returns list of (heading_text, body_text).
    Falls back to treating the whole document as one chapter.
    """
    heading_pattern = re.compile(r"^(#{1,2})\s+(.+)$", re.MULTILINE)
    matches = list(heading_pattern.finditer(content))

    if not matches:
        return [("Chapter 1", content.strip())] if content.strip() else []

    # Use the shallowest heading level present
    levels = [len(m.group(1)) for m in matches]
    split_level = min(levels)
    filtered = [(m.start(), m.group(2).strip()) for m in matches if len(m.group(1)) == split_level]

    result = []
    for i, (pos, title) in enumerate(filtered):
        heading_line_end = content.index("\n", pos) + 1 if "\n" in content[pos:] else len(content)
        end = filtered[i + 1][0] if i + 1 < len(filtered) else len(content)
        body = content[heading_line_end:end].strip()
        result.append((title, body))

    return result


def parse_markdown(file_path: Path) -> NovelRecord:
    """Parse a Markdown file into chapters, splitting on headings."""
    file_path = Path(file_path)
    content = file_path.read_text(encoding="utf-8")
    frontmatter, body = _extract_frontmatter(content)

    frontmatter.setdefault("title", file_path.stem.replace("_", " ").replace("-", " ").title())
    metadata = metadata_from_dict(frontmatter)

    chapters = []
    for heading, text in _split_by_headings(body):
        # Empty sections still become chapters; the page shows a placeholder
        chapters.append(Chapter(title=heading, content=text_to_html(text) or None))

    return NovelRecord(metadata=metadata, chapters=tuple(chapters))
