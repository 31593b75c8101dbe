"""Defines constants and small parsers for request input validation."""

import logging
import re

from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"\s*([+-]?[0-9]+)")

# Subjects that own a `<subject>_piece*` / `<subject>_problem` table family.
# The subject is interpolated into table names, so only these values are accepted.
SUBJECTS: tuple[str, ...] = (
    "math",
    "science",
    "japanese",
    "english",
    "korean",
    "medicine",
    "native_korean",
    "it",
    "biz_eco",
)

# Leading bytes of the only raster formats accepted for worksheet images
PNG_SIGNATURE: bytes = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE: bytes = b"\xff\xd8"

# Characters that may not appear in a download filename
FILENAME_ILLEGAL_CHARS: str = '\\/:*?"<>|'
MAX_FILENAME_LENGTH: int = 150

DEFAULT_PAGE: int = 1
DEFAULT_PAGE_SIZE: int = 20


def validate_subject(subject: str) -> str:
    if subject not in SUBJECTS:
        logger.warning("Rejected unknown subject: %s", subject)
        raise ValidationError("지원하지 않는 과목입니다.")
    return subject


def parse_int(value: str | int | None) -> int | None:
    """Lenient integer parsing: leading digits win, anything else is ``None``."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else None


def parse_id_list(raw: str) -> list[int]:
    """Parses a comma-separated id list, silently dropping non-numeric entries."""
    ids = [parse_int(part) for part in raw.split(",")]
    return [i for i in ids if i is not None]
