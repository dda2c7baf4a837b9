"""Access card administration endpoints."""

from datetime import date
from io import BytesIO

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from school_portal.core.dependencies import CardServiceDep, CurrentAdmin
from school_portal.models.access_card import CardStatus
from school_portal.schemas.access_card import (
    AccessCardResponse,
    CardFilter,
    CardGenerateRequest,
    CardPolicyResponse,
    CardStats,
    CardStatusUpdate,
    PaginatedAccessCardResponse,
)
from school_portal.schemas.common import MessageResponse

router = APIRouter()


@router.post("/generate", response_model=list[AccessCardResponse], status_code=201)
def generate_cards(
    request: CardGenerateRequest,
    admin: CurrentAdmin,
    service: CardServiceDep,
):
    """
    Generate a batch of access cards.

    Omitted ``expiry_days`` and ``usage_limit`` fall back to the configured
    card policy.
    """
    return service.generate_cards(request)


@router.get("", response_model=PaginatedAccessCardResponse)
def list_cards(
    admin: CurrentAdmin,
    service: CardServiceDep,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    status: CardStatus | None = None,
    search: str | None = None,
):
    """List access cards with filtering and pagination."""
    filters = CardFilter(status=status, search=search)
    return service.list_cards(filters, page, page_size)


@router.get("/stats", response_model=CardStats)
def get_card_stats(
    admin: CurrentAdmin,
    service: CardServiceDep,
):
    """Card counts per status."""
    return service.get_stats()


@router.get("/policy", response_model=CardPolicyResponse)
def get_card_policy(
    admin: CurrentAdmin,
    service: CardServiceDep,
):
    """Effective card policy used for new and regenerated cards."""
    return CardPolicyResponse(
        usage_limit_default=service.policy.usage_limit_default,
        expiry_duration_days=service.policy.expiry_duration_days,
        pin_length=service.policy.pin_length,
        batch_max=service.batch_max,
    )


@router.get("/export")
def export_cards(
    admin: CurrentAdmin,
    service: CardServiceDep,
    ids: list[int] | None = Query(None, description="Card IDs to export. All cards if empty."),
    status: CardStatus | None = None,
):
    """
    Download cards as an Excel sheet (serial, PIN, status, limit, expiry).
    Intended for printing a freshly generated batch.
    """
    content = service.export_cards(card_ids=ids, status=status)
    filename = f"access_cards_{date.today():%Y%m%d}.xlsx"

    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/students/{student_id}/regenerate-pin", response_model=AccessCardResponse)
def regenerate_student_pin(
    student_id: str,
    admin: CurrentAdmin,
    service: CardServiceDep,
):
    """Regenerate (or issue) the card bound to a student."""
    return service.regenerate_for_student(student_id)


@router.get("/{card_id}", response_model=AccessCardResponse)
def get_card(
    card_id: int,
    admin: CurrentAdmin,
    service: CardServiceDep,
):
    """Get an access card by ID."""
    return service.get_card(card_id)


@router.patch("/{card_id}/status", response_model=AccessCardResponse)
def update_card_status(
    card_id: int,
    request: CardStatusUpdate,
    admin: CurrentAdmin,
    service: CardServiceDep,
):
    """Deactivate, reactivate or expire a card."""
    return service.update_status(card_id, request.status)


@router.post("/{card_id}/regenerate-pin", response_model=AccessCardResponse)
def regenerate_pin(
    card_id: int,
    admin: CurrentAdmin,
    service: CardServiceDep,
):
    """Issue a new PIN and reset usage, binding and expiry."""
    return service.regenerate_pin(card_id)


@router.delete("/{card_id}", response_model=MessageResponse)
def delete_card(
    card_id: int,
    admin: CurrentAdmin,
    service: CardServiceDep,
):
    """Delete an access card."""
    service.delete_card(card_id)
    return MessageResponse(message="Access card deleted successfully")
