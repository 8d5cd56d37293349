"""cover.py — Resolve the optional cover image; failures degrade to no cover."""

from collections.abc import Callable
from dataclasses import dataclass

COVER_FILE_NAME = "cover.jpg"
COVER_MEDIA_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ResolvedCover:
    data: bytes
    file_name: str = COVER_FILE_NAME
    media_type: str = COVER_MEDIA_TYPE


def resolve_cover(
    cover_url: str | None,
    fetch_bytes: Callable[[str], bytes] | None,
    log: Callable[[str], None] = print,
) -> ResolvedCover | None:
    """
    Download the cover through fetch_bytes.

    Returns None when there is no cover URL, no fetch capability, or the fetch
    fails for any reason. Failures are logged as "Cover skipped: <reason>" and
    never raised: a book without a cover is still a valid book.
    """
    if not cover_url:
        return None
    if fetch_bytes is None:
        log("Cover skipped: no fetch capability configured")
        return None

    try:
        data = bytes(fetch_bytes(cover_url) or b"")
    except Exception as e:
        log(f"Cover skipped: {e}")
        return None

    if not data:
        log("Cover skipped: empty response")
        return None

    return ResolvedCover(data=data)
