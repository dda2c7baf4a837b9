"""
Tests for scratch-card verification.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from school_portal.core.exceptions import ConflictError, UsageLimitExceededError
from school_portal.models import AccessCard, CardStatus
from school_portal.services.verification import (
    VerificationFailure,
    VerificationOutcome,
    VerificationService,
)


@pytest.fixture
def service(db):
    return VerificationService(db, max_attempts=3)


@pytest.fixture
def student(make_student):
    return make_student("STU001")


class TestSuccessfulCheck:
    """A valid PIN for the right student."""

    def test_first_use_binds_card(self, db, service, student, make_card):
        card, pin = make_card()

        outcome = service.verify(pin, "STU001")

        assert outcome.ok
        assert outcome.student.student_id == "STU001"
        assert (outcome.usage_count, outcome.usage_limit) == (1, 5)
        db.refresh(card)
        assert card.bound_student_id == "STU001"
        assert card.used_by == "STU001"
        assert card.used_at is not None
        assert card.status == CardStatus.UNUSED

    def test_returns_students_results(self, db, service, student, make_student, make_card, make_result):
        make_student("STU002")
        make_result("STU001", "70.00")
        make_result("STU002", "80.00")
        _, pin = make_card()

        outcome = service.verify(pin, "STU001")

        assert [r.student_id for r in outcome.results] == ["STU001"]

    def test_lookup_by_serial_number(self, db, service, student, make_card):
        card, pin = make_card()

        outcome = service.verify(pin, "STU001", serial_number=card.serial_number)

        assert outcome.ok

    def test_last_use_marks_card_used(self, db, service, student, make_card):
        card, pin = make_card(usage_limit=2, usage_count=1, bound_student_id="STU001")

        outcome = service.verify(pin, "STU001")

        assert outcome.ok
        db.refresh(card)
        assert card.usage_count == 2
        assert card.status == CardStatus.USED


class TestRefusals:
    """Each refusal reason, and that refusals never consume a use."""

    def test_unknown_student(self, service, make_card):
        _, pin = make_card()

        outcome = service.verify(pin, "NOBODY")

        assert outcome.failure is VerificationFailure.STUDENT_NOT_FOUND

    def test_unknown_student_beats_unknown_pin(self, service):
        outcome = service.verify("000000000000", "NOBODY")

        assert outcome.failure is VerificationFailure.STUDENT_NOT_FOUND

    def test_unknown_pin(self, service, student):
        outcome = service.verify("999999999999", "STU001")

        assert outcome.failure is VerificationFailure.INVALID_PIN

    def test_wrong_pin_for_serial(self, db, service, student, make_card):
        card, _ = make_card()

        outcome = service.verify("111111111111", "STU001", serial_number=card.serial_number)

        assert outcome.failure is VerificationFailure.INVALID_PIN
        db.refresh(card)
        assert card.usage_count == 0

    def test_expired_card_is_persisted_as_expired(self, db, service, student, make_card):
        card, pin = make_card(expiry_date=datetime.now(timezone.utc) - timedelta(minutes=1))

        outcome = service.verify(pin, "STU001")

        assert outcome.failure is VerificationFailure.CARD_EXPIRED
        db.refresh(card)
        assert card.status == CardStatus.EXPIRED
        assert card.usage_count == 0

    def test_expired_card_stays_expired_after_date_moves(self, db, service, student, make_card):
        """Once expired, a card is refused even if its expiry date is pushed out."""
        card, pin = make_card(expiry_date=datetime.now(timezone.utc) - timedelta(minutes=1))
        assert service.verify(pin, "STU001").failure is VerificationFailure.CARD_EXPIRED

        card.expiry_date = datetime.now(timezone.utc) + timedelta(days=5)
        db.commit()

        for _ in range(3):
            assert service.verify(pin, "STU001").failure is VerificationFailure.CARD_EXPIRED
        db.refresh(card)
        assert card.status == CardStatus.EXPIRED
        assert card.usage_count == 0

    def test_expiry_uses_injected_clock(self, db, student, make_card):
        card, pin = make_card()
        later = datetime.now(timezone.utc) + timedelta(days=31)

        outcome = VerificationService(db, clock=lambda: later).verify(pin, "STU001")

        assert outcome.failure is VerificationFailure.CARD_EXPIRED

    def test_deactivated(self, db, service, student, make_card):
        card, pin = make_card(status=CardStatus.DEACTIVATED)

        outcome = service.verify(pin, "STU001")

        assert outcome.failure is VerificationFailure.CARD_DEACTIVATED

    def test_usage_limit(self, db, service, student, make_card):
        card, pin = make_card(usage_limit=2)

        assert service.verify(pin, "STU001").ok
        assert service.verify(pin, "STU001").ok
        outcome = service.verify(pin, "STU001")

        assert outcome.failure is VerificationFailure.USAGE_LIMIT_EXCEEDED
        assert outcome.usage_limit == 2
        db.refresh(card)
        assert card.usage_count == 2

    def test_bound_to_other_student(self, db, service, student, make_student, make_card):
        make_student("STU002")
        card, pin = make_card()
        assert service.verify(pin, "STU001").ok

        outcome = service.verify(pin, "STU002")

        assert outcome.failure is VerificationFailure.CARD_BOUND_TO_OTHER_STUDENT
        db.refresh(card)
        assert card.usage_count == 1
        assert card.bound_student_id == "STU001"


class TestCheckOrder:
    """When several checks fail, the earliest one is reported."""

    def test_expired_before_deactivated(self, service, student, make_card):
        _, pin = make_card(
            status=CardStatus.DEACTIVATED,
            expiry_date=datetime.now(timezone.utc) - timedelta(days=1),
        )

        assert service.verify(pin, "STU001").failure is VerificationFailure.CARD_EXPIRED

    def test_deactivated_before_usage_limit(self, service, student, make_card):
        _, pin = make_card(status=CardStatus.DEACTIVATED, usage_count=5, usage_limit=5)

        assert service.verify(pin, "STU001").failure is VerificationFailure.CARD_DEACTIVATED

    def test_usage_limit_before_binding(self, service, student, make_card):
        _, pin = make_card(usage_count=5, usage_limit=5, bound_student_id="STU999")

        assert service.verify(pin, "STU001").failure is VerificationFailure.USAGE_LIMIT_EXCEEDED

    def test_pin_before_binding(self, service, student, make_card):
        card, _ = make_card(bound_student_id="STU999")

        outcome = service.verify("123123123123", "STU001", serial_number=card.serial_number)

        assert outcome.failure is VerificationFailure.INVALID_PIN


class TestConcurrentUse:
    """Usage updates must not be lost when two checks race."""

    def test_retries_after_concurrent_use(self, db, service, student, make_card):
        card, pin = make_card(bound_student_id="STU001")
        original = service._apply_usage
        raced = []

        def racing_apply(target, values, expected_count):
            if not raced:
                raced.append(True)
                # Another request records a use between our read and write
                db.execute(
                    update(AccessCard)
                    .where(AccessCard.id == target.id)
                    .values(usage_count=AccessCard.usage_count + 1)
                )
                db.commit()
            return original(target, values, expected_count)

        service._apply_usage = racing_apply

        outcome = service.verify(pin, "STU001")

        assert outcome.ok
        assert outcome.usage_count == 2
        db.expire_all()
        assert db.get(AccessCard, card.id).usage_count == 2

    def test_gives_up_after_max_attempts(self, db, student, make_card):
        _, pin = make_card()
        service = VerificationService(db, max_attempts=2)
        service._apply_usage = lambda target, values, expected_count: False

        with pytest.raises(ConflictError) as exc_info:
            service.verify(pin, "STU001")
        assert exc_info.value.code == "CONCURRENT_CARD_USE"


class TestOutcome:
    """Tests for VerificationOutcome."""

    def test_usage_limit_error_carries_limit(self):
        outcome = VerificationOutcome.refused(
            VerificationFailure.USAGE_LIMIT_EXCEEDED, usage_count=30, usage_limit=30
        )

        error = outcome.to_exception()

        assert isinstance(error, UsageLimitExceededError)
        assert error.status_code == 400
        assert error.details == {"usage_limit": 30}

    def test_success_has_no_error(self):
        with pytest.raises(ValueError):
            VerificationOutcome().to_exception()
