"""Public result checker endpoint."""

from fastapi import APIRouter

from school_portal.core.dependencies import VerificationServiceDep
from school_portal.schemas.result_checker import (
    CheckerErrorResponse,
    CheckerResult,
    CheckerStudent,
    VerifyCardRequest,
    VerifyCardResponse,
)

router = APIRouter()


@router.post(
    "/verify",
    response_model=VerifyCardResponse,
    responses={
        400: {"model": CheckerErrorResponse, "description": "Invalid, expired, deactivated or used-up card"},
        403: {"model": CheckerErrorResponse, "description": "Card linked to another student"},
        404: {"model": CheckerErrorResponse, "description": "Unknown student ID"},
    },
)
def verify_card(
    request: VerifyCardRequest,
    service: VerificationServiceDep,
):
    """
    Check a scratch-card PIN and return the student's results.

    Each successful check uses up one of the card's uses. The first
    successful check links the card to the student for good.
    """
    outcome = service.verify(request.pin, request.student_id, request.serial_number)
    if not outcome.ok:
        raise outcome.to_exception()

    return VerifyCardResponse(
        student=CheckerStudent.model_validate(outcome.student),
        results=[CheckerResult.model_validate(r) for r in outcome.results],
        usage_count=outcome.usage_count,
        usage_limit=outcome.usage_limit,
    )
