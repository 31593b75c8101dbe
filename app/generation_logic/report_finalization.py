"""Turns rendered DOCX bytes into a download response."""

import logging
from urllib.parse import quote

from fastapi.responses import Response

from app.core.validation import FILENAME_ILLEGAL_CHARS
from app.core.validation import MAX_FILENAME_LENGTH

__all__ = [
    "build_docx_response",
    "content_disposition",
    "safe_filename",
    "DOCX_EXTENSION",
    "DOCX_MEDIA_TYPE",
]

logger = logging.getLogger(__name__)

# Constants used for the generated DOCX ------------------------------------------------
DOCX_EXTENSION = ".docx"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Characters encodeURIComponent leaves untouched besides ASCII alphanumerics and "-_."
_URI_COMPONENT_SAFE = "!~*'()"

_ILLEGAL_TRANSLATION = str.maketrans({ch: "_" for ch in FILENAME_ILLEGAL_CHARS})


def safe_filename(name: str) -> str:
    """Replace characters that are illegal in filenames, trim, and cap the length."""
    return str(name).translate(_ILLEGAL_TRANSLATION).strip()[:MAX_FILENAME_LENGTH]


def content_disposition(filename: str) -> str:
    """RFC 5987 attachment header value, keeping non-ASCII names intact."""
    return f"attachment; filename*=UTF-8''{quote(filename, safe=_URI_COMPONENT_SAFE)}"


def build_docx_response(docx_bytes: bytes, title: str, request_id: str) -> Response:
    """Wrap *docx_bytes* as an attachment named after *title*."""
    filename = f"{safe_filename(title)}{DOCX_EXTENSION}"
    logger.info("[%s] Sending %s (%d bytes)", request_id, filename, len(docx_bytes))
    return Response(
        content=docx_bytes,
        media_type=DOCX_MEDIA_TYPE,
        headers={
            "Content-Disposition": content_disposition(filename),
            "Cache-Control": "no-store, no-transform",
            "X-Content-Type-Options": "nosniff",
            "Content-Length": str(len(docx_bytes)),
        },
    )
