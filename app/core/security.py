"""Password checks and JWT issuing/verification for the dashboard login."""

import logging
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from typing import Any

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.security import HTTPBearer

from app.core.config import settings
from app.core.exceptions import AuthenticationError

# Initialize logger
logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(password: str, hashed: str | None) -> bool:
    """Checks *password* against a stored bcrypt hash ($2a$/$2b$ prefixes both accepted)."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_access_token(claims: dict[str, Any], now: datetime | None = None) -> str:
    """Signs *claims* into a JWT expiring after ``settings.jwt_expires_hours``."""
    issued_at = now or datetime.now(timezone.utc)
    payload = dict(claims)
    payload["iat"] = issued_at
    payload["exp"] = issued_at + timedelta(hours=settings.jwt_expires_hours)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verifies signature and expiry of *token* and returns its claims.

    Raises:
        AuthenticationError: If the token is malformed, tampered with or expired.
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        logger.info("Rejected expired token")
        raise AuthenticationError("유효하지 않은 토큰입니다.", error=str(e)) from e
    except jwt.InvalidTokenError as e:
        logger.info("Rejected invalid token: %s", e)
        raise AuthenticationError("유효하지 않은 토큰입니다.", error=str(e)) from e


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any]:
    """FastAPI dependency extracting and verifying the ``Authorization: Bearer`` token."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("토큰이 필요합니다.")
    return decode_access_token(credentials.credentials)
