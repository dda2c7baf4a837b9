"""Access card schemas."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from school_portal.models.access_card import CardStatus
from school_portal.schemas.common import BaseSchema, PaginatedResponse


class CardGenerateRequest(BaseSchema):
    """Batch generation request; omitted limits fall back to the card policy."""

    count: int = Field(..., ge=1)
    expiry_days: int | None = Field(None, ge=1, le=3650)
    usage_limit: int | None = Field(None, ge=1, le=1000)


class CardStatusUpdate(BaseSchema):
    """Admin status change.

    ``active`` lifts a deactivation; the card returns to ``unused`` or
    ``used`` depending on its usage count.
    """

    status: Literal["deactivated", "expired", "active"]


class AccessCardResponse(BaseSchema):
    """Access card response schema (the PIN hash is never exposed)."""

    id: int
    serial_number: str
    pin: str
    bound_student_id: str | None
    status: CardStatus
    expiry_date: datetime
    usage_limit: int
    usage_count: int
    remaining_uses: int
    used_at: datetime | None
    used_by: str | None
    created_at: datetime
    updated_at: datetime


class CardFilter(BaseSchema):
    """Access card filter options."""

    status: CardStatus | None = None
    search: str | None = None  # Serial number or bound student ID


class PaginatedAccessCardResponse(PaginatedResponse):
    """Paginated access card list."""

    items: list[AccessCardResponse]


class CardStats(BaseSchema):
    """Card counts per status."""

    total: int = 0
    unused: int = 0
    used: int = 0
    expired: int = 0
    deactivated: int = 0


class CardPolicyResponse(BaseSchema):
    """Effective card policy."""

    usage_limit_default: int
    expiry_duration_days: int
    pin_length: int
    batch_max: int
