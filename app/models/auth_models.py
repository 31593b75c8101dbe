from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Login payload. Fields are optional so missing ones get the dashboard's own 400 message."""

    email: str | None = None
    password: str | None = None


class UserPublic(BaseModel):
    id: int
    email: str
    name: str | None = None
    role: str
