"""Result management endpoints."""

import logging

from fastapi import APIRouter, Query

from school_portal.core.dependencies import CurrentAdmin, ResultServiceDep
from school_portal.schemas.common import MessageResponse
from school_portal.schemas.result import (
    PaginatedResultResponse,
    RecalculatePositionsRequest,
    RecalculatePositionsResponse,
    ResultCreate,
    ResultFilter,
    ResultResponse,
    ResultUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ResultResponse, status_code=201)
def create_result(
    request: ResultCreate,
    admin: CurrentAdmin,
    service: ResultServiceDep,
):
    """
    Create a result.

    Class positions for the result's class, session and term are
    recalculated straight after the result is saved.
    """
    result = service.create_result(request)
    logger.info(f"[RESULTS] Result {result.id} created by {admin.email}")
    return result


@router.get("", response_model=PaginatedResultResponse)
def list_results(
    admin: CurrentAdmin,
    service: ResultServiceDep,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    class_name: str | None = Query(None, alias="class"),
    session: str | None = None,
    term: str | None = None,
    student_id: str | None = None,
):
    """List results with filtering and pagination."""
    filters = ResultFilter(
        class_name=class_name,
        session=session,
        term=term,
        student_id=student_id,
    )
    return service.list_results(filters, page, page_size)


@router.post("/recalculate-positions", response_model=RecalculatePositionsResponse)
def recalculate_positions(
    request: RecalculatePositionsRequest,
    admin: CurrentAdmin,
    service: ResultServiceDep,
):
    """Rebuild class positions for one class, session and term."""
    out_of = service.ranking.recalculate(request.class_name, request.session, request.term)
    return RecalculatePositionsResponse(
        message=f"Positions recalculated for {out_of} results",
        out_of=out_of,
    )


@router.get("/{result_id}", response_model=ResultResponse)
def get_result(
    result_id: int,
    admin: CurrentAdmin,
    service: ResultServiceDep,
):
    """Get a result by ID."""
    return service.get_result(result_id)


@router.put("/{result_id}", response_model=ResultResponse)
def update_result(
    result_id: int,
    request: ResultUpdate,
    admin: CurrentAdmin,
    service: ResultServiceDep,
):
    """Update a result."""
    return service.update_result(result_id, request)


@router.delete("/{result_id}", response_model=MessageResponse)
def delete_result(
    result_id: int,
    admin: CurrentAdmin,
    service: ResultServiceDep,
):
    """Delete a result."""
    service.delete_result(result_id)
    return MessageResponse(message="Result deleted successfully")
