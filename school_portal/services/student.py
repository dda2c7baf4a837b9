"""Student management service."""

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from school_portal.core.exceptions import ConflictError, NotFoundError
from school_portal.models.student import Student
from school_portal.schemas.student import (
    PaginatedStudentResponse,
    StudentCreate,
    StudentFilter,
    StudentResponse,
    StudentUpdate,
)


class StudentService:
    """Student management service."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_student_id(self, student_id: str) -> Student | None:
        """Look up a student by public student ID."""
        result = self.db.execute(
            select(Student).where(Student.student_id == student_id)
        )
        return result.scalar_one_or_none()

    def create_student(self, request: StudentCreate) -> Student:
        """Create a new student."""
        if self.find_by_student_id(request.student_id):
            raise ConflictError(
                f"Student ID '{request.student_id}' is already registered",
                code="DUPLICATE_STUDENT_ID",
            )

        student = Student(**request.model_dump())
        self.db.add(student)
        self.db.flush()
        self.db.refresh(student)
        return student

    def get_student(self, student_pk: int) -> Student:
        """Get student by database ID."""
        student = self.db.get(Student, student_pk)
        if not student:
            raise NotFoundError("Student", str(student_pk))
        return student

    def update_student(self, student_pk: int, request: StudentUpdate) -> Student:
        """Update a student."""
        student = self.get_student(student_pk)
        update_data = request.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(student, field, value)
        self.db.flush()
        self.db.refresh(student)
        return student

    def delete_student(self, student_pk: int) -> None:
        """Delete a student."""
        student = self.get_student(student_pk)
        self.db.delete(student)
        self.db.flush()

    def list_students(
        self,
        filters: StudentFilter | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> PaginatedStudentResponse:
        """List students with filtering and pagination."""
        query = select(Student)

        if filters:
            if filters.grade_level:
                query = query.where(Student.grade_level == filters.grade_level)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        Student.first_name.ilike(search_term),
                        Student.last_name.ilike(search_term),
                        Student.student_id.ilike(search_term),
                    )
                )

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.execute(count_query).scalar() or 0

        # Apply pagination
        offset = (page - 1) * page_size
        query = query.order_by(Student.last_name, Student.first_name, Student.id)
        query = query.offset(offset).limit(page_size)

        students = self.db.execute(query).scalars().all()

        return PaginatedStudentResponse(
            items=[StudentResponse.model_validate(s) for s in students],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size,
        )
