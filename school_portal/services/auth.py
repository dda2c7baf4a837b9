"""Authentication service."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from school_portal.core.config import settings
from school_portal.core.exceptions import AuthenticationError
from school_portal.core.security import (
    create_access_token,
    create_refresh_token,
    verify_password,
    verify_refresh_token,
)
from school_portal.models.admin_user import AdminUser
from school_portal.schemas.auth import LoginRequest, TokenResponse


class AuthService:
    """Authentication service."""

    def __init__(self, db: Session):
        self.db = db

    def _issue_tokens(self, admin: AdminUser) -> TokenResponse:
        return TokenResponse(
            access_token=create_access_token(admin.id, admin.email),
            refresh_token=create_refresh_token(admin.id),
            token_type="bearer",
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    def login(self, request: LoginRequest) -> TokenResponse:
        """Authenticate an administrator and return tokens."""
        result = self.db.execute(
            select(AdminUser).where(AdminUser.email == request.email.lower())
        )
        admin = result.scalar_one_or_none()

        if not admin:
            raise AuthenticationError("Invalid email or password")

        if not verify_password(request.password, admin.password_hash):
            raise AuthenticationError("Invalid email or password")

        if not admin.is_active:
            raise AuthenticationError("Admin account is deactivated")

        # Update last login
        admin.last_login_at = datetime.now(timezone.utc)
        self.db.flush()

        return self._issue_tokens(admin)

    def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        payload = verify_refresh_token(refresh_token)

        if not payload:
            raise AuthenticationError("Invalid or expired refresh token")

        try:
            admin_id = int(payload.get("sub", ""))
        except ValueError:
            raise AuthenticationError("Invalid token payload")

        admin = self.db.get(AdminUser, admin_id)
        if not admin or not admin.is_active:
            raise AuthenticationError("Admin not found or deactivated")

        return self._issue_tokens(admin)
