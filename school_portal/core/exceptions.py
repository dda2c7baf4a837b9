"""Custom exception classes and error handling."""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": code,
                    "message": message,
                    "details": details or {},
                },
            },
        )


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="AUTH_FAILED",
            message=message,
        )


class ValidationError(AppException):
    """Data validation failed."""

    def __init__(
        self,
        message: str = "Validation error",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="VALIDATION_ERROR",
            message=message,
            details=details,
        )


class ConflictError(AppException):
    """Request conflicts with the current state of a resource."""

    def __init__(
        self,
        message: str = "Conflict",
        code: str = "CONFLICT",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            code=code,
            message=message,
            details=details,
        )


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(
        self,
        resource: str = "Resource",
        identifier: str | None = None,
    ):
        details = {}
        if identifier:
            details["identifier"] = identifier
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            code="NOT_FOUND",
            message=f"{resource} not found",
            details=details,
        )


class StorageError(AppException):
    """Persistence layer failure."""

    def __init__(self, message: str = "A storage error occurred"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="STORAGE_ERROR",
            message=message,
        )


# ==========================================
# Result checker outcomes
# ==========================================

class StudentNotFoundError(AppException):
    """No student matches the submitted student ID."""

    def __init__(self, student_id: str | None = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            code="STUDENT_NOT_FOUND",
            message="Student not found. Please check the student ID.",
            details={"student_id": student_id} if student_id else None,
        )


class InvalidPinError(AppException):
    """No card matches the submitted PIN."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="INVALID_PIN",
            message="Invalid scratch card PIN.",
        )


class CardExpiredError(AppException):
    """The card is past its expiry date."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="CARD_EXPIRED",
            message="This scratch card has expired.",
        )


class CardDeactivatedError(AppException):
    """The card was deactivated by an administrator."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="CARD_DEACTIVATED",
            message="This scratch card has been deactivated.",
        )


class UsageLimitExceededError(AppException):
    """The card has no uses left."""

    def __init__(self, usage_limit: int | None = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="USAGE_LIMIT_EXCEEDED",
            message="This scratch card has reached its usage limit.",
            details={"usage_limit": usage_limit} if usage_limit is not None else None,
        )


class CardBoundToOtherStudentError(AppException):
    """The card is already linked to a different student."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            code="CARD_BOUND_TO_OTHER_STUDENT",
            message="This scratch card is already linked to another student.",
        )
