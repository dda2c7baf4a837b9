"""
Tests for access card administration.
"""

from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from openpyxl import load_workbook

from school_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from school_portal.core.security import pin_lookup_digest, verify_pin
from school_portal.models import CardStatus
from school_portal.schemas.access_card import CardGenerateRequest
from school_portal.services.access_card import AccessCardService


@pytest.fixture
def service(db, policy):
    return AccessCardService(db, policy, batch_max=10)


class TestGenerateCards:
    """Tests for AccessCardService.generate_cards."""

    def test_policy_defaults(self, db, service):
        cards = service.generate_cards(CardGenerateRequest(count=3))
        db.commit()

        assert len(cards) == 3
        assert len({c.serial_number for c in cards}) == 3
        assert len({c.pin for c in cards}) == 3
        for card in cards:
            assert card.status == CardStatus.UNUSED
            assert card.usage_limit == 3
            assert card.usage_count == 0
            assert card.bound_student_id is None
            assert len(card.pin) == 8
            assert card.pin[0] != "0"
            assert card.serial_number.startswith("SN")
            assert card.pin_lookup == pin_lookup_digest(card.pin)
            assert verify_pin(card.pin, card.pin_hash)

    def test_overrides(self, db, service):
        cards = service.generate_cards(CardGenerateRequest(count=1, expiry_days=7, usage_limit=10))

        card = cards[0]
        assert card.usage_limit == 10
        remaining = card.expiry_date - datetime.now(timezone.utc)
        assert timedelta(days=6) < remaining <= timedelta(days=7)

    def test_batch_limit(self, service):
        with pytest.raises(ValidationError):
            service.generate_cards(CardGenerateRequest(count=11))


class TestUpdateStatus:
    """Tests for AccessCardService.update_status."""

    def test_deactivate_and_reactivate(self, db, service, make_card):
        card, _ = make_card(usage_count=2, usage_limit=5)

        service.update_status(card.id, "deactivated")
        assert card.status == CardStatus.DEACTIVATED

        service.update_status(card.id, "active")
        assert card.status == CardStatus.UNUSED

    def test_reactivate_spent_card_is_used(self, db, service, make_card):
        card, _ = make_card(usage_count=5, usage_limit=5, status=CardStatus.DEACTIVATED)

        service.update_status(card.id, "active")

        assert card.status == CardStatus.USED

    def test_expired_is_final(self, service, make_card):
        card, _ = make_card(status=CardStatus.EXPIRED)

        with pytest.raises(ConflictError) as exc_info:
            service.update_status(card.id, "active")
        assert exc_info.value.code == "CARD_EXPIRED"

    def test_missing_card(self, service):
        with pytest.raises(NotFoundError):
            service.update_status(404, "deactivated")


class TestRegeneratePin:
    """Tests for PIN regeneration."""

    def test_resets_card(self, db, service, make_card):
        card, old_pin = make_card(
            usage_count=5,
            usage_limit=5,
            status=CardStatus.EXPIRED,
            bound_student_id="STU001",
            expiry_date=datetime.now(timezone.utc) - timedelta(days=1),
        )

        service.regenerate_pin(card.id)

        assert card.pin != old_pin
        assert verify_pin(card.pin, card.pin_hash)
        assert not verify_pin(old_pin, card.pin_hash)
        assert card.status == CardStatus.UNUSED
        assert card.usage_count == 0
        assert card.usage_limit == 3
        assert card.bound_student_id is None
        assert card.used_at is None

    def test_for_student_keeps_binding(self, db, service, make_student, make_card):
        make_student("STU001")
        card, old_pin = make_card(bound_student_id="STU001", usage_count=4)

        regenerated = service.regenerate_for_student("STU001")

        assert regenerated.id == card.id
        assert regenerated.pin != old_pin
        assert regenerated.bound_student_id == "STU001"
        assert regenerated.usage_count == 0

    def test_for_student_issues_new_card(self, db, service, make_student):
        make_student("STU002")

        card = service.regenerate_for_student("STU002")

        assert card.id is not None
        assert card.bound_student_id == "STU002"
        assert card.status == CardStatus.UNUSED

    def test_for_unknown_student(self, service):
        with pytest.raises(NotFoundError):
            service.regenerate_for_student("GHOST")


class TestExpireOverdue:
    """Tests for the expiry sweep."""

    def test_only_overdue_live_cards(self, db, service, make_card):
        past = datetime.now(timezone.utc) - timedelta(days=1)
        overdue, _ = make_card(expiry_date=past)
        overdue_used, _ = make_card(expiry_date=past, status=CardStatus.USED)
        overdue_off, _ = make_card(expiry_date=past, status=CardStatus.DEACTIVATED)
        current, _ = make_card()

        count = service.expire_overdue()
        db.commit()

        assert count == 2
        for card in (overdue, overdue_used, overdue_off, current):
            db.refresh(card)
        assert overdue.status == CardStatus.EXPIRED
        assert overdue_used.status == CardStatus.EXPIRED
        assert overdue_off.status == CardStatus.DEACTIVATED
        assert current.status == CardStatus.UNUSED


class TestStatsAndExport:
    """Tests for card statistics and the spreadsheet export."""

    def test_stats(self, db, service, make_card):
        make_card()
        make_card()
        make_card(status=CardStatus.USED)
        make_card(status=CardStatus.DEACTIVATED)

        stats = service.get_stats()

        assert stats.total == 4
        assert stats.unused == 2
        assert stats.used == 1
        assert stats.expired == 0
        assert stats.deactivated == 1

    def test_export(self, db, service, make_card):
        card, pin = make_card()
        make_card(status=CardStatus.DEACTIVATED)

        content = service.export_cards(card_ids=[card.id])

        ws = load_workbook(BytesIO(content)).active
        rows = list(ws.iter_rows(values_only=True))
        assert rows[0][:3] == ("Serial Number", "PIN", "Status")
        assert len(rows) == 2
        assert rows[1][0] == card.serial_number
        assert rows[1][1] == pin
        assert rows[1][2] == "unused"
