"""Scratch-card access model."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_portal.core.database import Base
from school_portal.models.base import IDMixin, TimestampMixin


class CardStatus(str, enum.Enum):
    """Access card status enumeration."""

    UNUSED = "unused"
    USED = "used"
    EXPIRED = "expired"
    DEACTIVATED = "deactivated"


class AccessCard(Base, IDMixin, TimestampMixin):
    """A scratch card granting limited access to one student's results."""

    __tablename__ = "access_cards"

    serial_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    # Plaintext kept for printing cards; never used to authorise a request
    pin: Mapped[str] = mapped_column(String(32), nullable=False)
    pin_hash: Mapped[str] = mapped_column(Text, nullable=False)
    pin_lookup: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    bound_student_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    status: Mapped[CardStatus] = mapped_column(
        Enum(CardStatus, values_callable=lambda e: [m.value for m in e]),
        default=CardStatus.UNUSED,
        nullable=False,
        index=True,
    )
    expiry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    usage_limit: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    used_by: Mapped[str | None] = mapped_column(String(50), nullable=True)

    @property
    def remaining_uses(self) -> int:
        return max(self.usage_limit - self.usage_count, 0)

    def __repr__(self) -> str:
        return f"<AccessCard(id={self.id}, serial={self.serial_number}, status={self.status})>"
