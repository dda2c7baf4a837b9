"""Result management service.

Creating, moving or deleting a result changes its cohort, so every such
write is committed first and then followed by a best-effort position
recalculation for the affected cohort(s).
"""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from school_portal.core.exceptions import NotFoundError
from school_portal.models.result import Result
from school_portal.schemas.result import (
    PaginatedResultResponse,
    ResultCreate,
    ResultFilter,
    ResultResponse,
    ResultUpdate,
)
from school_portal.services.grading import grade_subjects, summarize
from school_portal.services.ranking import RankingService, TieBreak
from school_portal.services.student import StudentService

logger = logging.getLogger(__name__)

COHORT_FIELDS = {"class_name", "session", "term"}
REQUIRED_FIELDS = COHORT_FIELDS | {"subjects"}
DERIVED_FIELDS = ("total_score", "average", "gpa")


class ResultService:
    """Result CRUD with eager class position maintenance."""

    def __init__(self, db: Session, tie_break: TieBreak = "load_order"):
        self.db = db
        self.ranking = RankingService(db, tie_break)

    def _with_derived_fields(self, data: dict[str, Any]) -> dict[str, Any]:
        """Grade subject lines and fill aggregates the caller left out."""
        data["subjects"] = grade_subjects(data["subjects"])
        summary = summarize(data["subjects"])
        for field in DERIVED_FIELDS:
            if data.get(field) is None:
                data[field] = summary[field]
        return data

    def safe_recalculate(self, class_name: str, session: str, term: str) -> None:
        """Recalculate a cohort, logging instead of raising on failure.

        The triggering write is already committed, so no ranking error may
        surface to the caller.
        """
        try:
            self.ranking.recalculate(class_name, session, term)
        except Exception:
            logger.exception(
                f"[RESULTS] Position recalculation skipped for {class_name} / {session} / {term}"
            )

    def create_result(self, request: ResultCreate) -> Result:
        """Create a result and re-rank its cohort."""
        if not StudentService(self.db).find_by_student_id(request.student_id):
            raise NotFoundError("Student", request.student_id)

        data = self._with_derived_fields(request.model_dump())
        result = Result(**data)
        self.db.add(result)
        self.db.commit()

        self.safe_recalculate(*result.cohort)
        self.db.refresh(result)
        return result

    def get_result(self, result_id: int) -> Result:
        """Get result by ID."""
        result = self.db.get(Result, result_id)
        if not result:
            raise NotFoundError("Result", str(result_id))
        return result

    def update_result(self, result_id: int, request: ResultUpdate) -> Result:
        """Update a result; re-rank only when its cohort may have changed."""
        result = self.get_result(result_id)
        previous_cohort = result.cohort
        update_data = {
            field: value
            for field, value in request.model_dump(exclude_unset=True).items()
            if value is not None or field not in REQUIRED_FIELDS
        }

        if update_data.get("subjects"):
            for field in DERIVED_FIELDS:
                update_data.setdefault(field, None)
            update_data = self._with_derived_fields(update_data)

        for field, value in update_data.items():
            setattr(result, field, value)
        self.db.commit()

        if COHORT_FIELDS & update_data.keys():
            # Re-read to learn the cohort the row now belongs to
            result = self.db.get(Result, result_id, populate_existing=True)
            self.safe_recalculate(*result.cohort)
            if result.cohort != previous_cohort:
                self.safe_recalculate(*previous_cohort)
            self.db.refresh(result)

        return result

    def delete_result(self, result_id: int) -> None:
        """Delete a result and re-rank the cohort it left."""
        result = self.get_result(result_id)
        cohort = result.cohort
        self.db.delete(result)
        self.db.commit()
        self.safe_recalculate(*cohort)

    def list_for_student(self, student_id: str) -> list[Result]:
        """All results belonging to one student."""
        query = (
            select(Result)
            .where(Result.student_id == student_id)
            .order_by(Result.session, Result.term, Result.id)
        )
        return list(self.db.execute(query).scalars().all())

    def list_results(
        self,
        filters: ResultFilter | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> PaginatedResultResponse:
        """List results with filtering and pagination."""
        query = select(Result)

        if filters:
            if filters.class_name:
                query = query.where(Result.class_name == filters.class_name)
            if filters.session:
                query = query.where(Result.session == filters.session)
            if filters.term:
                query = query.where(Result.term == filters.term)
            if filters.student_id:
                query = query.where(Result.student_id == filters.student_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.execute(count_query).scalar() or 0

        offset = (page - 1) * page_size
        query = query.order_by(Result.id.desc()).offset(offset).limit(page_size)
        results = self.db.execute(query).scalars().all()

        return PaginatedResultResponse(
            items=[ResultResponse.model_validate(r) for r in results],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size,
        )
