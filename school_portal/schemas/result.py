"""Result schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from school_portal.schemas.common import BaseSchema, PaginatedResponse


class SubjectScore(BaseSchema):
    """One subject line on a result."""

    subject: str = Field(..., min_length=1, max_length=100)
    score: float = Field(..., ge=0, le=100)
    grade: str | None = Field(None, max_length=5)
    remark: str | None = Field(None, max_length=50)


class ResultCreate(BaseSchema):
    """Result creation schema.

    ``total_score``, ``average`` and ``gpa`` are derived from the subject
    scores when omitted. Class positions cannot be supplied here.
    """

    student_id: str = Field(..., min_length=1, max_length=50)
    session: str = Field(..., min_length=1, max_length=20)
    term: str = Field(..., min_length=1, max_length=50)
    class_name: str = Field(..., alias="class", min_length=1, max_length=50)
    subjects: list[SubjectScore] = Field(..., min_length=1)
    total_score: int | None = Field(None, ge=0)
    average: Decimal | None = Field(None, ge=0, le=100, decimal_places=2)
    gpa: Decimal | None = Field(None, ge=0, le=5, decimal_places=2)
    remarks: str | None = None


class ResultUpdate(BaseSchema):
    """Result update schema."""

    session: str | None = Field(None, min_length=1, max_length=20)
    term: str | None = Field(None, min_length=1, max_length=50)
    class_name: str | None = Field(None, alias="class", min_length=1, max_length=50)
    subjects: list[SubjectScore] | None = Field(None, min_length=1)
    total_score: int | None = Field(None, ge=0)
    average: Decimal | None = Field(None, ge=0, le=100, decimal_places=2)
    gpa: Decimal | None = Field(None, ge=0, le=5, decimal_places=2)
    remarks: str | None = None


class ResultResponse(BaseSchema):
    """Result response schema."""

    id: int
    student_id: str
    session: str
    term: str
    class_name: str = Field(..., alias="class")
    subjects: list[SubjectScore]
    total_score: int | None
    average: Decimal | None
    gpa: Decimal | None
    remarks: str | None
    position: int | None
    out_of: int | None
    created_at: datetime
    updated_at: datetime


class ResultFilter(BaseSchema):
    """Result filter options."""

    class_name: str | None = None
    session: str | None = None
    term: str | None = None
    student_id: str | None = None


class PaginatedResultResponse(PaginatedResponse):
    """Paginated result list."""

    items: list[ResultResponse]


class RecalculatePositionsRequest(BaseSchema):
    """Cohort whose class positions should be rebuilt."""

    class_name: str = Field(..., alias="class", min_length=1, max_length=50)
    session: str = Field(..., min_length=1, max_length=20)
    term: str = Field(..., min_length=1, max_length=50)


class RecalculatePositionsResponse(BaseSchema):
    """Outcome of a manual recalculation."""

    message: str
    out_of: int
