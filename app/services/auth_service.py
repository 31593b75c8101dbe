import logging

from app.core.database import Database
from app.core.exceptions import AuthenticationError
from app.core.exceptions import NotFoundError
from app.core.exceptions import ValidationError
from app.core.security import create_access_token
from app.core.security import verify_password
from app.models.auth_models import UserPublic

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "유효하지 않은 이메일 또는 비밀번호입니다."


async def login(db: Database, email: str | None, password: str | None) -> tuple[str, UserPublic]:
    """Authenticate an admin account and return (token, user).

    Raises:
        ValidationError: If email or password is missing.
        AuthenticationError: If no admin matches or the password is wrong.
    """
    if not email or not password:
        raise ValidationError("이메일과 비밀번호를 입력해주세요.")

    row = await db.fetch_one(
        "SELECT id, email, password, role, name FROM user WHERE email = %s AND role = 'admin' LIMIT 1",
        (email,),
    )
    if row is None or not verify_password(password, row.get("password")):
        logger.info("Failed login attempt for %s", email)
        raise AuthenticationError(INVALID_CREDENTIALS)

    user = UserPublic(id=row["id"], email=row["email"], name=row.get("name"), role=row["role"])
    token = create_access_token({"id": user.id, "email": user.email, "role": user.role})
    logger.info("Admin %s logged in", user.email)
    return token, user


async def get_user(db: Database, user_id: int) -> UserPublic:
    row = await db.fetch_one("SELECT id, email, role, name FROM user WHERE id = %s", (user_id,))
    if row is None:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    return UserPublic(id=row["id"], email=row["email"], name=row.get("name"), role=row["role"])
