"""Worksheet export: rows -> normalized images -> DOCX -> attachment response."""

import logging

from fastapi.responses import Response

from app.core.database import Database
from app.core.exceptions import NotFoundError
from app.core.exceptions import ValidationError
from app.core.validation import validate_subject
from app.services.doc_builder import assemble
from app.services.doc_builder import build_docx
from app.services.image_normalizer import ImageNormalizer
from app.services.image_normalizer import build_http_client
from app.services.piece_repository import fetch_piece_rows

from .report_finalization import build_docx_response

__all__ = ["export_piece_document"]

logger = logging.getLogger(__name__)


async def export_piece_document(
    db: Database,
    subject: str,
    piece_id: int,
    title: str | None,
    request_id: str,
) -> Response:
    """Build the Word worksheet for one piece.

    Raises:
        ValidationError: Title missing or subject unknown (checked before any query).
        NotFoundError: The piece has no live problems.
        DocBuilderError: Rendering or serialization failed.
    """
    title = (title or "").strip()
    if not title:
        raise ValidationError("제목을 입력해주세요.")
    validate_subject(subject)

    rows = await fetch_piece_rows(db, subject, piece_id)
    if not rows:
        logger.info("[%s] No rows for %s piece %s", request_id, subject, piece_id)
        raise NotFoundError("문제 또는 해설 이미지가 없습니다.")

    logger.info("[%s] Exporting %s piece %s with %d rows", request_id, subject, piece_id, len(rows))
    async with build_http_client() as client:
        document = await assemble(title, rows, ImageNormalizer(client))

    docx_bytes = await build_docx(document)
    return build_docx_response(docx_bytes, title, request_id)
