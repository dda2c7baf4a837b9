"""
Tests for result management and the position updates it triggers.
"""

from decimal import Decimal

import pytest

from school_portal.core.exceptions import NotFoundError, StorageError
from school_portal.models import Result
from school_portal.schemas.result import ResultCreate, ResultUpdate
from school_portal.services.result import ResultService


def result_request(student_id: str, score: float, class_name: str = "JSS1", term: str = "First Term"):
    return ResultCreate(
        student_id=student_id,
        session="2025/2026",
        term=term,
        class_name=class_name,
        subjects=[
            {"subject": "Mathematics", "score": score},
            {"subject": "English", "score": score},
        ],
    )


@pytest.fixture
def students(make_student):
    return [make_student(f"STU00{i}", first_name=f"Pupil{i}") for i in range(1, 4)]


class TestCreateResult:
    """Tests for ResultService.create_result."""

    def test_derives_totals_and_grades(self, db, students):
        result = ResultService(db).create_result(result_request("STU001", 72))

        assert result.total_score == 144
        assert result.average == Decimal("72.00")
        assert result.gpa == Decimal("3.70")
        assert result.subjects[0]["grade"] == "B+"

    def test_keeps_supplied_average(self, db, students):
        request = result_request("STU001", 72)
        request.average = Decimal("50.00")

        result = ResultService(db).create_result(request)

        assert result.average == Decimal("50.00")

    def test_ranks_the_cohort(self, db, students):
        service = ResultService(db)
        first = service.create_result(result_request("STU001", 60))
        second = service.create_result(result_request("STU002", 80))

        db.refresh(first)
        assert (first.position, first.out_of) == (2, 2)
        assert (second.position, second.out_of) == (1, 2)

    def test_unknown_student(self, db):
        with pytest.raises(NotFoundError):
            ResultService(db).create_result(result_request("NOPE", 60))

    def test_ranking_failure_does_not_fail_the_write(self, db, students, monkeypatch):
        service = ResultService(db)

        def broken(*args):
            raise StorageError("Failed to recalculate class positions")

        monkeypatch.setattr(service.ranking, "recalculate", broken)

        result = service.create_result(result_request("STU001", 60))

        assert db.get(Result, result.id) is not None
        assert result.position is None

    def test_unexpected_ranking_error_does_not_fail_the_write(self, db, students, monkeypatch):
        service = ResultService(db)

        def broken(*args):
            raise RuntimeError("ranking bug")

        monkeypatch.setattr(service.ranking, "recalculate", broken)

        result = service.create_result(result_request("STU001", 60))

        assert db.get(Result, result.id) is not None
        assert result.position is None


class TestUpdateResult:
    """Tests for ResultService.update_result."""

    def test_moving_cohort_reranks_both(self, db, students):
        service = ResultService(db)
        a = service.create_result(result_request("STU001", 90))
        b = service.create_result(result_request("STU002", 70))
        c = service.create_result(result_request("STU003", 50))

        service.update_result(a.id, ResultUpdate(class_name="JSS2"))

        for record in (a, b, c):
            db.refresh(record)
        assert (a.class_name, a.position, a.out_of) == ("JSS2", 1, 1)
        assert (b.position, b.out_of) == (1, 2)
        assert (c.position, c.out_of) == (2, 2)

    def test_score_change_without_cohort_change_keeps_positions(self, db, students):
        service = ResultService(db)
        a = service.create_result(result_request("STU001", 90))
        b = service.create_result(result_request("STU002", 70))

        service.update_result(
            b.id,
            ResultUpdate(subjects=[{"subject": "Mathematics", "score": 99}]),
        )

        db.refresh(a)
        db.refresh(b)
        assert b.average == Decimal("99.00")
        assert (a.position, b.position) == (1, 2)

    def test_remarks_only(self, db, students):
        service = ResultService(db)
        a = service.create_result(result_request("STU001", 90))

        updated = service.update_result(a.id, ResultUpdate(remarks="Well done"))

        assert updated.remarks == "Well done"
        assert updated.position == 1

    def test_missing_result(self, db):
        with pytest.raises(NotFoundError):
            ResultService(db).update_result(999, ResultUpdate(remarks="x"))


class TestDeleteResult:
    """Tests for ResultService.delete_result."""

    def test_reranks_remaining(self, db, students):
        service = ResultService(db)
        a = service.create_result(result_request("STU001", 90))
        b = service.create_result(result_request("STU002", 70))

        service.delete_result(a.id)

        db.refresh(b)
        assert (b.position, b.out_of) == (1, 1)


class TestListForStudent:
    """Tests for ResultService.list_for_student."""

    def test_only_that_students_results(self, db, students):
        service = ResultService(db)
        service.create_result(result_request("STU001", 90))
        service.create_result(result_request("STU001", 80, term="Second Term"))
        service.create_result(result_request("STU002", 70))

        results = service.list_for_student("STU001")

        assert [r.term for r in results] == ["First Term", "Second Term"]
