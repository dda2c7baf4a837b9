"""Academic result model."""

from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from school_portal.core.database import Base
from school_portal.models.base import IDMixin, TimestampMixin


class Result(Base, IDMixin, TimestampMixin):
    """One student's result for a (session, term, class) cohort."""

    __tablename__ = "results"

    student_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    session: Mapped[str] = mapped_column(String(20), nullable=False)
    term: Mapped[str] = mapped_column(String(50), nullable=False)
    class_name: Mapped[str] = mapped_column(String(50), nullable=False)  # 'class' is reserved keyword
    subjects: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=list,
    )
    total_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    average: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    gpa: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Written only by the ranking service
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    out_of: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_results_cohort", "class_name", "session", "term"),
    )

    @property
    def cohort(self) -> tuple[str, str, str]:
        return (self.class_name, self.session, self.term)

    def __repr__(self) -> str:
        return f"<Result(id={self.id}, student_id={self.student_id}, cohort={self.cohort})>"
