"""parsers/ — Load novel records from scraped JSON or Markdown manuscripts."""

from pathlib import Path

from models import NovelRecord
from parsers.base import NovelRecordError, record_from_dict, validate_record

SUPPORTED_EXTENSIONS = {".json", ".md", ".markdown"}

__all__ = ["NovelRecordError", "parse_file", "record_from_dict", "validate_record", "SUPPORTED_EXTENSIONS"]


def parse_file(file_path: Path) -> NovelRecord:
    """Dispatch to the appropriate parser based on file extension."""
    file_path = Path(file_path)
    suffix = file_path.suffix.lower()

    if suffix == ".json":
        from parsers.json_parser import parse_json
        return parse_json(file_path)
    elif suffix in (".md", ".markdown"):
        from parsers.markdown_parser import parse_markdown
        return parse_markdown(file_path)
    else:
        raise ValueError(
            f"Unsupported file format: '{suffix}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
