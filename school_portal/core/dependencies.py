"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from school_portal.core.config import settings
from school_portal.core.database import get_db
from school_portal.core.exceptions import AuthenticationError
from school_portal.core.security import verify_access_token
from school_portal.models.admin_user import AdminUser
from school_portal.services.access_card import AccessCardService
from school_portal.services.result import ResultService
from school_portal.services.verification import VerificationService


def get_current_admin(
    db: Annotated[Session, Depends(get_db)],
    authorization: str = Header(..., description="Bearer token"),
) -> AdminUser:
    """Extract and validate the current administrator from JWT token."""
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    token = authorization[7:]  # Remove "Bearer " prefix
    payload = verify_access_token(token)

    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise AuthenticationError("Invalid token payload")

    try:
        admin_id = int(user_id_str)
    except ValueError:
        raise AuthenticationError("Invalid user ID in token")

    admin = db.get(AdminUser, admin_id)

    if not admin:
        raise AuthenticationError("User not found")

    if not admin.is_active:
        raise AuthenticationError("User account is deactivated")

    return admin


def get_access_card_service(
    db: Annotated[Session, Depends(get_db)],
) -> AccessCardService:
    return AccessCardService(db, settings.card_policy, batch_max=settings.CARD_BATCH_MAX)


def get_result_service(
    db: Annotated[Session, Depends(get_db)],
) -> ResultService:
    return ResultService(db, tie_break=settings.RANKING_TIE_BREAK)


def get_verification_service(
    db: Annotated[Session, Depends(get_db)],
) -> VerificationService:
    return VerificationService(db, max_attempts=settings.VERIFY_MAX_ATTEMPTS)


# Type aliases for dependency injection
CurrentAdmin = Annotated[AdminUser, Depends(get_current_admin)]
CardServiceDep = Annotated[AccessCardService, Depends(get_access_card_service)]
ResultServiceDep = Annotated[ResultService, Depends(get_result_service)]
VerificationServiceDep = Annotated[VerificationService, Depends(get_verification_service)]
