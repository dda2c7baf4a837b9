"""Student management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_portal.core.database import get_db
from school_portal.core.dependencies import CurrentAdmin
from school_portal.schemas.common import MessageResponse
from school_portal.schemas.student import (
    PaginatedStudentResponse,
    StudentCreate,
    StudentFilter,
    StudentResponse,
    StudentUpdate,
)
from school_portal.services.student import StudentService

router = APIRouter()


@router.post("", response_model=StudentResponse, status_code=201)
def create_student(
    request: StudentCreate,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new student."""
    service = StudentService(db)
    return service.create_student(request)


@router.get("", response_model=PaginatedStudentResponse)
def list_students(
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    grade_level: str | None = None,
    search: str | None = None,
):
    """List students with filtering and pagination."""
    service = StudentService(db)
    filters = StudentFilter(grade_level=grade_level, search=search)
    return service.list_students(filters, page, page_size)


@router.get("/{student_pk}", response_model=StudentResponse)
def get_student(
    student_pk: int,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a student by database ID."""
    service = StudentService(db)
    return service.get_student(student_pk)


@router.patch("/{student_pk}", response_model=StudentResponse)
def update_student(
    student_pk: int,
    request: StudentUpdate,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
):
    """Update a student."""
    service = StudentService(db)
    return service.update_student(student_pk, request)


@router.delete("/{student_pk}", response_model=MessageResponse)
def delete_student(
    student_pk: int,
    admin: CurrentAdmin,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a student."""
    service = StudentService(db)
    service.delete_student(student_pk)
    return MessageResponse(message="Student deleted successfully")
