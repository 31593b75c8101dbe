import logging

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi.responses import Response

from app.core.database import Database
from app.core.database import get_database
from app.core.exceptions import ValidationError
from app.generation_logic.piece_export import export_piece_document
from app.models.piece_models import WordExportRequest
from app.services.piece_repository import fetch_piece_image_urls
from app.services.piece_repository import fetch_user_pieces

from .errors import handle_route_errors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pieces", tags=["Pieces"])


@router.get("/user-pieces")
@handle_route_errors("학습지 조회 중 오류가 발생했습니다.")
async def get_user_pieces(email: str | None = None, db: Database = Depends(get_database)) -> dict:
    """Worksheets owned by the university user with the given account email."""
    if not email:
        raise ValidationError("이메일을 입력해주세요.")
    return {"success": True, "data": await fetch_user_pieces(db, email)}


@router.get("/{subject}/{piece_id}/images")
@handle_route_errors("이미지 조회 중 오류가 발생했습니다.")
async def get_piece_images(subject: str, piece_id: int, db: Database = Depends(get_database)) -> dict:
    urls = await fetch_piece_image_urls(db, subject, piece_id)
    return {"success": True, "data": urls.model_dump()}


@router.post("/{subject}/{piece_id}/word")
@handle_route_errors("Word 문서 생성 중 오류가 발생했습니다.")
async def export_word(
    request: Request,
    subject: str,
    piece_id: int,
    payload: WordExportRequest | None = None,
    db: Database = Depends(get_database),
) -> Response:
    """Generates the landscape problem/solution worksheet as a DOCX attachment.

    Returns:
        Response: The DOCX file with download headers.

    Raises:
        ValidationError: 400 when the title is missing or the subject is unknown.
        NotFoundError: 404 when the piece has no problems.
        ServerError: 500 on any rendering failure.
    """
    request_id = request.state.request_id
    title = payload.title if payload else None
    logger.info("[%s] Word export requested for %s piece %s", request_id, subject, piece_id)
    return await export_piece_document(db, subject, piece_id, title, request_id)
