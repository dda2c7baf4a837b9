"""Admin sign-in schemas."""

from datetime import datetime

from pydantic import Field

from school_portal.schemas.common import BaseSchema


class LoginRequest(BaseSchema):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6)


class TokenResponse(BaseSchema):
    """Bearer token pair; ``expires_in`` is the access token lifetime in seconds."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshTokenRequest(BaseSchema):
    refresh_token: str


class AdminUserResponse(BaseSchema):
    """The signed-in administrator."""

    id: int
    email: str
    first_name: str
    last_name: str
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime
