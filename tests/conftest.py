"""
Shared fixtures: an in-memory SQLite database, factories and an API client.
"""

import os

# Must be set before school_portal reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RANKING_TIE_BREAK"] = "load_order"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient

from school_portal.core.config import CardPolicy, settings
from school_portal.core.database import Base, SessionLocal, engine
from school_portal.core.security import (
    create_access_token,
    hash_password,
    hash_pin,
    pin_lookup_digest,
)
from school_portal.main import app
from school_portal.models import AccessCard, AdminUser, CardStatus, Result, Student

_serials = count(1)
_pins = count(100000000001)


@pytest.fixture
def db():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def policy():
    """Small card policy so limits are easy to reach."""
    return CardPolicy(usage_limit_default=3, expiry_duration_days=30, pin_length=8)


@pytest.fixture
def make_student(db):
    def _make(student_id: str = "STU001", first_name: str = "Ada", last_name: str = "Obi", **kwargs):
        student = Student(
            student_id=student_id,
            first_name=first_name,
            last_name=last_name,
            grade_level=kwargs.pop("grade_level", "JSS1"),
            **kwargs,
        )
        db.add(student)
        db.commit()
        return student

    return _make


@pytest.fixture
def make_card(db):
    """Create a card with a known plaintext PIN; returns (card, pin)."""

    def _make(pin: str | None = None, **overrides):
        pin = pin or str(next(_pins))
        values = {
            "serial_number": f"SN2026-{next(_serials):08d}",
            "status": CardStatus.UNUSED,
            "expiry_date": datetime.now(timezone.utc) + timedelta(days=30),
            "usage_limit": 5,
            "usage_count": 0,
        }
        values.update(overrides)
        card = AccessCard(
            pin=pin,
            pin_hash=hash_pin(pin),
            pin_lookup=pin_lookup_digest(pin),
            **values,
        )
        db.add(card)
        db.commit()
        return card, pin

    return _make


@pytest.fixture
def make_result(db):
    def _make(student_id: str, average: str | None, class_name: str = "JSS1",
              session: str = "2025/2026", term: str = "First Term", **kwargs):
        result = Result(
            student_id=student_id,
            session=session,
            term=term,
            class_name=class_name,
            subjects=kwargs.pop("subjects", [{"subject": "Mathematics", "score": 70}]),
            average=Decimal(average) if average is not None else None,
            **kwargs,
        )
        db.add(result)
        db.commit()
        return result

    return _make


@pytest.fixture
def admin(db):
    user = AdminUser(
        email="admin@school.test",
        first_name="Grace",
        last_name="Eze",
        password_hash=hash_password("secret-pass"),
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def auth_headers(admin):
    token = create_access_token(admin.id, admin.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db):
    """API client sharing the test database."""
    return TestClient(app)


@pytest.fixture
def api():
    return settings.API_V1_PREFIX
