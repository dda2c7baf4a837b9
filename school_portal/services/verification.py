"""Scratch-card PIN verification and usage accounting.

Checks run in a fixed order so the caller always gets the same, most
specific reason for a refusal:

1. student exists
2. card exists (by serial number, else by PIN lookup digest)
3. card not expired (an expired card is marked ``expired`` on the spot)
4. card not deactivated
5. uses left
6. PIN matches the stored hash
7. card unbound or bound to this student

A successful check consumes one use with a conditional UPDATE keyed on the
usage count that was read, so two concurrent checks cannot both record the
same use. Refusals are returned as a ``VerificationOutcome``, not raised.
"""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from school_portal.core.exceptions import (
    AppException,
    CardBoundToOtherStudentError,
    CardDeactivatedError,
    CardExpiredError,
    ConflictError,
    InvalidPinError,
    StudentNotFoundError,
    UsageLimitExceededError,
)
from school_portal.core.security import pin_lookup_digest, verify_pin
from school_portal.models.access_card import AccessCard, CardStatus
from school_portal.models.base import as_utc
from school_portal.models.result import Result
from school_portal.models.student import Student
from school_portal.services.result import ResultService
from school_portal.services.student import StudentService

logger = logging.getLogger(__name__)


class VerificationFailure(str, enum.Enum):
    """Reasons a card check can be refused."""

    STUDENT_NOT_FOUND = "STUDENT_NOT_FOUND"
    INVALID_PIN = "INVALID_PIN"
    CARD_EXPIRED = "CARD_EXPIRED"
    CARD_DEACTIVATED = "CARD_DEACTIVATED"
    USAGE_LIMIT_EXCEEDED = "USAGE_LIMIT_EXCEEDED"
    CARD_BOUND_TO_OTHER_STUDENT = "CARD_BOUND_TO_OTHER_STUDENT"


@dataclass
class VerificationOutcome:
    """Tagged result of a card check."""

    failure: VerificationFailure | None = None
    student: Student | None = None
    results: list[Result] = field(default_factory=list)
    usage_count: int | None = None
    usage_limit: int | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def refused(cls, failure: VerificationFailure, **kwargs: Any) -> "VerificationOutcome":
        return cls(failure=failure, **kwargs)

    def to_exception(self) -> AppException:
        """HTTP error matching the refusal reason."""
        if self.failure is None:
            raise ValueError("A successful outcome has no error")
        if self.failure is VerificationFailure.USAGE_LIMIT_EXCEEDED:
            return UsageLimitExceededError(self.usage_limit)
        return FAILURE_ERRORS[self.failure]()


FAILURE_ERRORS: dict[VerificationFailure, type[AppException]] = {
    VerificationFailure.STUDENT_NOT_FOUND: StudentNotFoundError,
    VerificationFailure.INVALID_PIN: InvalidPinError,
    VerificationFailure.CARD_EXPIRED: CardExpiredError,
    VerificationFailure.CARD_DEACTIVATED: CardDeactivatedError,
    VerificationFailure.CARD_BOUND_TO_OTHER_STUDENT: CardBoundToOtherStudentError,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationService:
    """Decides whether a PIN unlocks a student's results and records the use."""

    def __init__(
        self,
        db: Session,
        max_attempts: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.max_attempts = max_attempts
        self.clock = clock

    def find_card(self, pin: str, serial_number: str | None = None) -> AccessCard | None:
        """Locate a card without reading the plaintext PIN column."""
        if serial_number:
            query = select(AccessCard).where(AccessCard.serial_number == serial_number)
        else:
            query = select(AccessCard).where(AccessCard.pin_lookup == pin_lookup_digest(pin))
        return self.db.execute(query).scalar_one_or_none()

    def _mark_expired(self, card: AccessCard) -> None:
        if card.status == CardStatus.EXPIRED:
            return
        self.db.execute(
            update(AccessCard)
            .where(AccessCard.id == card.id)
            .values(status=CardStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(card)
        logger.info(f"[VERIFY] Card {card.serial_number} expired")

    def _apply_usage(self, card: AccessCard, values: dict[str, Any], expected_count: int) -> bool:
        """Write the usage update only if nobody else used the card meanwhile."""
        result = self.db.execute(
            update(AccessCard)
            .where(
                AccessCard.id == card.id,
                AccessCard.usage_count == expected_count,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            return False
        self.db.commit()
        self.db.refresh(card)
        return True

    def _check_card(
        self,
        card: AccessCard,
        pin: str,
        student_id: str,
        now: datetime,
        hash_checked: str | None,
    ) -> VerificationFailure | None:
        if now > as_utc(card.expiry_date) or card.status == CardStatus.EXPIRED:
            self._mark_expired(card)
            return VerificationFailure.CARD_EXPIRED

        if card.status == CardStatus.DEACTIVATED:
            return VerificationFailure.CARD_DEACTIVATED

        if card.usage_count >= card.usage_limit:
            return VerificationFailure.USAGE_LIMIT_EXCEEDED

        if card.pin_hash != hash_checked and not verify_pin(pin, card.pin_hash):
            return VerificationFailure.INVALID_PIN

        if card.bound_student_id and card.bound_student_id != student_id:
            return VerificationFailure.CARD_BOUND_TO_OTHER_STUDENT

        return None

    def verify(
        self,
        pin: str,
        student_id: str,
        serial_number: str | None = None,
    ) -> VerificationOutcome:
        """Check a (PIN, student ID) pair and consume one use on success."""
        student = StudentService(self.db).find_by_student_id(student_id)
        if student is None:
            return VerificationOutcome.refused(VerificationFailure.STUDENT_NOT_FOUND)

        card = self.find_card(pin, serial_number)
        if card is None:
            return VerificationOutcome.refused(VerificationFailure.INVALID_PIN)

        hash_checked: str | None = None
        for attempt in range(1, self.max_attempts + 1):
            now = self.clock()
            failure = self._check_card(card, pin, student_id, now, hash_checked)
            if failure is not None:
                logger.info(
                    f"[VERIFY] Card {card.serial_number} refused for {student_id}: {failure.value}"
                )
                return VerificationOutcome.refused(
                    failure,
                    usage_count=card.usage_count,
                    usage_limit=card.usage_limit,
                )
            hash_checked = card.pin_hash

            new_count = card.usage_count + 1
            values: dict[str, Any] = {
                "usage_count": new_count,
                "used_at": now,
                "used_by": student_id,
            }
            if not card.bound_student_id:
                values["bound_student_id"] = student_id
            if new_count >= card.usage_limit:
                values["status"] = CardStatus.USED

            if self._apply_usage(card, values, expected_count=card.usage_count):
                if "bound_student_id" in values:
                    logger.info(f"[VERIFY] Card {card.serial_number} bound to {student_id}")
                if card.status == CardStatus.USED:
                    logger.info(f"[VERIFY] Card {card.serial_number} reached its usage limit")
                break

            logger.warning(
                f"[VERIFY] Concurrent use of card {card.serial_number} (attempt {attempt}/{self.max_attempts})"
            )
            card = self.db.get(AccessCard, card.id, populate_existing=True)
            if card is None:
                return VerificationOutcome.refused(VerificationFailure.INVALID_PIN)
        else:
            raise ConflictError(
                "The scratch card is being used elsewhere. Please try again.",
                code="CONCURRENT_CARD_USE",
            )

        results = ResultService(self.db).list_for_student(student_id)
        return VerificationOutcome(
            student=student,
            results=results,
            usage_count=card.usage_count,
            usage_limit=card.usage_limit,
        )
