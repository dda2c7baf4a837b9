"""Database models package."""

from school_portal.models.access_card import AccessCard, CardStatus
from school_portal.models.admin_user import AdminUser
from school_portal.models.result import Result
from school_portal.models.student import Student

__all__ = [
    # Admin
    "AdminUser",
    # Student
    "Student",
    # Result
    "Result",
    # Access cards
    "AccessCard",
    "CardStatus",
]
