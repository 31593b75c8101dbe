from fastapi import APIRouter
from fastapi import Depends

from app.core.database import Database
from app.core.database import get_database
from app.services.university_service import list_universities

from .errors import handle_route_errors

router = APIRouter(prefix="/universities", tags=["Universities"])


@router.get("")
@handle_route_errors("대학교 목록을 가져오는 중 오류가 발생했습니다.")
async def get_universities(db: Database = Depends(get_database)) -> dict:
    return {"success": True, "data": await list_universities(db)}
