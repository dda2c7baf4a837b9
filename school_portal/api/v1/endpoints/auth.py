"""Authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_portal.core.database import get_db
from school_portal.core.dependencies import CurrentAdmin
from school_portal.schemas.auth import (
    AdminUserResponse,
    LoginRequest,
    RefreshTokenRequest,
    TokenResponse,
)
from school_portal.services.auth import AuthService

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(
    request: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Authenticate an administrator and return access/refresh tokens."""
    service = AuthService(db)
    return service.login(request)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    request: RefreshTokenRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Refresh access token using a valid refresh token."""
    service = AuthService(db)
    return service.refresh_tokens(request.refresh_token)


@router.get("/me", response_model=AdminUserResponse)
def get_me(admin: CurrentAdmin):
    """Get the signed-in administrator."""
    return admin
