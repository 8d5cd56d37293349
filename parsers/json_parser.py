"""parsers/json_parser.py — Load a scraped novel record saved as JSON."""

import json
from pathlib import Path

from models import NovelRecord
from parsers.base import NovelRecordError, record_from_dict


def parse_json(file_path: Path) -> NovelRecord:
    """Read {"metadata": {...}, "chapters": [...]} from disk and validate it."""
    file_path = Path(file_path)
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise NovelRecordError(f"Invalid JSON in {file_path.name}: {e}") from e
    return record_from_dict(data)
