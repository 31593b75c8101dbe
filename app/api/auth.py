import logging
from typing import Any

from fastapi import APIRouter
from fastapi import Depends

from app.core.database import Database
from app.core.database import get_database
from app.core.exceptions import AuthenticationError
from app.core.security import get_token_claims
from app.models.auth_models import LoginRequest
from app.services import auth_service

from .errors import handle_route_errors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login")
@handle_route_errors("로그인 중 오류가 발생했습니다.")
async def login(payload: LoginRequest | None = None, db: Database = Depends(get_database)) -> dict:
    payload = payload or LoginRequest()
    token, user = await auth_service.login(db, payload.email, payload.password)
    return {"success": True, "message": "로그인 성공", "token": token, "user": user.model_dump()}


@router.post("/logout")
async def logout() -> dict:
    # Tokens are stateless; the client simply discards it.
    return {"success": True, "message": "로그아웃 성공"}


@router.get("/me")
@handle_route_errors("사용자 정보 조회 중 오류가 발생했습니다.")
async def me(claims: dict[str, Any] = Depends(get_token_claims), db: Database = Depends(get_database)) -> dict:
    user_id = claims.get("id")
    if user_id is None:
        raise AuthenticationError("유효하지 않은 토큰입니다.")
    user = await auth_service.get_user(db, user_id)
    return {"success": True, "user": user.model_dump()}
