"""Public result checker schemas (camelCase on the wire)."""

from decimal import Decimal
from typing import Any

from pydantic import Field

from school_portal.schemas.common import BaseSchema, CamelSchema
from school_portal.schemas.result import SubjectScore


class VerifyCardRequest(CamelSchema):
    """PIN submission from the public result checker."""

    pin: str = Field(..., min_length=1, max_length=64)
    student_id: str = Field(..., min_length=1, max_length=50)
    serial_number: str | None = Field(None, max_length=50)


class CheckerStudent(CamelSchema):
    """Student details shown next to the results."""

    student_id: str
    first_name: str
    last_name: str
    grade_level: str | None = None


class CheckerResult(CamelSchema):
    """A result as shown to students and parents."""

    id: int
    session: str
    term: str
    class_name: str = Field(..., alias="class")
    subjects: list[SubjectScore]
    total_score: int | None = None
    average: Decimal | None = None
    gpa: Decimal | None = None
    position: int | None = None
    out_of: int | None = None
    remarks: str | None = None


class VerifyCardResponse(CamelSchema):
    """Successful verification payload."""

    student: CheckerStudent
    results: list[CheckerResult]
    usage_count: int
    usage_limit: int


class CheckerError(BaseSchema):
    code: str = Field(..., examples=["INVALID_PIN"])
    message: str = Field(..., examples=["Invalid scratch card PIN."])
    details: dict[str, Any] = Field(default_factory=dict)


class CheckerErrorResponse(BaseSchema):
    """Refusal body returned by the result checker."""

    success: bool = False
    error: CheckerError
