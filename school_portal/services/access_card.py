"""Access card (scratch card) administration service."""

import logging
from datetime import datetime, timedelta, timezone
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from school_portal.core.config import CardPolicy
from school_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from school_portal.core.security import (
    generate_pin,
    generate_serial_number,
    hash_pin,
    pin_lookup_digest,
)
from school_portal.models.access_card import AccessCard, CardStatus
from school_portal.models.base import as_utc
from school_portal.schemas.access_card import (
    AccessCardResponse,
    CardFilter,
    CardGenerateRequest,
    CardStats,
    PaginatedAccessCardResponse,
)
from school_portal.services.student import StudentService

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["Serial Number", "PIN", "Status", "Usage Limit", "Expires", "Student ID"]
EXPORT_COLUMN_WIDTHS = [22, 18, 14, 12, 14, 16]


class AccessCardService:
    """Issues, lists and administers access cards."""

    def __init__(self, db: Session, policy: CardPolicy, batch_max: int = 500):
        self.db = db
        self.policy = policy
        self.batch_max = batch_max

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _pin_taken(self, digest: str) -> bool:
        result = self.db.execute(
            select(AccessCard.id).where(AccessCard.pin_lookup == digest)
        )
        return result.first() is not None

    def _serial_taken(self, serial_number: str) -> bool:
        result = self.db.execute(
            select(AccessCard.id).where(AccessCard.serial_number == serial_number)
        )
        return result.first() is not None

    def _new_pin(self, reserved: set[str]) -> tuple[str, str]:
        """A fresh PIN and its lookup digest, unique across all cards."""
        while True:
            pin = generate_pin(self.policy.pin_length)
            digest = pin_lookup_digest(pin)
            if digest not in reserved and not self._pin_taken(digest):
                reserved.add(digest)
                return pin, digest

    def _new_serial(self, reserved: set[str]) -> str:
        while True:
            serial_number = generate_serial_number(self._now())
            if serial_number not in reserved and not self._serial_taken(serial_number):
                reserved.add(serial_number)
                return serial_number

    def _issue_pin(self, card: AccessCard, reserved: set[str] | None = None) -> None:
        """Set pin, pin_hash and pin_lookup together."""
        pin, digest = self._new_pin(reserved if reserved is not None else set())
        card.pin = pin
        card.pin_hash = hash_pin(pin)
        card.pin_lookup = digest

    def generate_cards(self, request: CardGenerateRequest) -> list[AccessCard]:
        """Create a batch of unused, unbound cards."""
        if request.count > self.batch_max:
            raise ValidationError(
                f"Cannot generate more than {self.batch_max} cards at once",
                details={"count": request.count, "batch_max": self.batch_max},
            )

        expiry_days = request.expiry_days or self.policy.expiry_duration_days
        usage_limit = request.usage_limit or self.policy.usage_limit_default
        expiry_date = self._now() + timedelta(days=expiry_days)

        pins: set[str] = set()
        serials: set[str] = set()
        cards = []
        for _ in range(request.count):
            card = AccessCard(
                serial_number=self._new_serial(serials),
                status=CardStatus.UNUSED,
                expiry_date=expiry_date,
                usage_limit=usage_limit,
                usage_count=0,
            )
            self._issue_pin(card, pins)
            self.db.add(card)
            cards.append(card)

        self.db.flush()
        logger.info(
            f"[CARDS] Generated {len(cards)} cards (limit={usage_limit}, expires={expiry_date.date()})"
        )
        return cards

    def get_card(self, card_id: int) -> AccessCard:
        """Get card by ID."""
        card = self.db.get(AccessCard, card_id)
        if not card:
            raise NotFoundError("Access card", str(card_id))
        return card

    def list_cards(
        self,
        filters: CardFilter | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> PaginatedAccessCardResponse:
        """List cards with filtering and pagination."""
        query = select(AccessCard)

        if filters:
            if filters.status:
                query = query.where(AccessCard.status == filters.status)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        AccessCard.serial_number.ilike(search_term),
                        AccessCard.bound_student_id.ilike(search_term),
                    )
                )

        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.execute(count_query).scalar() or 0

        offset = (page - 1) * page_size
        query = query.order_by(AccessCard.id.desc()).offset(offset).limit(page_size)
        cards = self.db.execute(query).scalars().all()

        return PaginatedAccessCardResponse(
            items=[AccessCardResponse.model_validate(c) for c in cards],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size,
        )

    def get_stats(self) -> CardStats:
        """Card counts per status."""
        rows = self.db.execute(
            select(AccessCard.status, func.count()).group_by(AccessCard.status)
        ).all()
        counts = {status.value: count for status, count in rows}
        return CardStats(total=sum(counts.values()), **counts)

    def update_status(self, card_id: int, status: str) -> AccessCard:
        """Apply an administrative status change.

        Expired cards only come back through PIN regeneration.
        """
        card = self.get_card(card_id)

        if card.status == CardStatus.EXPIRED and status != CardStatus.EXPIRED.value:
            raise ConflictError(
                "Expired cards cannot be changed; regenerate the PIN instead",
                code="CARD_EXPIRED",
            )

        if status == "active":
            if card.status == CardStatus.DEACTIVATED:
                card.status = (
                    CardStatus.USED
                    if card.usage_count >= card.usage_limit
                    else CardStatus.UNUSED
                )
        else:
            card.status = CardStatus(status)

        self.db.flush()
        self.db.refresh(card)
        logger.info(f"[CARDS] Card {card.serial_number} status set to {card.status.value}")
        return card

    def _reset(self, card: AccessCard) -> None:
        """New PIN, fresh expiry, no usage and no binding."""
        self._issue_pin(card)
        card.status = CardStatus.UNUSED
        card.usage_count = 0
        card.usage_limit = self.policy.usage_limit_default
        card.expiry_date = self._now() + timedelta(days=self.policy.expiry_duration_days)
        card.bound_student_id = None
        card.used_at = None
        card.used_by = None

    def regenerate_pin(self, card_id: int) -> AccessCard:
        """Issue a new PIN for a card and reset its usage."""
        card = self.get_card(card_id)
        self._reset(card)
        self.db.flush()
        self.db.refresh(card)
        logger.info(f"[CARDS] PIN regenerated for card {card.serial_number}")
        return card

    def regenerate_for_student(self, student_id: str) -> AccessCard:
        """Regenerate the card bound to a student, issuing one if none exists.

        The new card stays bound to that student.
        """
        if not StudentService(self.db).find_by_student_id(student_id):
            raise NotFoundError("Student", student_id)

        card = self.db.execute(
            select(AccessCard)
            .where(AccessCard.bound_student_id == student_id)
            .order_by(AccessCard.id.desc())
            .limit(1)
        ).scalar_one_or_none()

        if card is None:
            card = AccessCard(serial_number=self._new_serial(set()))
            self.db.add(card)

        self._reset(card)
        card.bound_student_id = student_id
        self.db.flush()
        self.db.refresh(card)
        logger.info(f"[CARDS] PIN regenerated for student {student_id} (card {card.serial_number})")
        return card

    def expire_overdue(self, now: datetime | None = None) -> int:
        """Mark every unused or used card past its expiry date as expired."""
        now = now or self._now()
        result = self.db.execute(
            update(AccessCard)
            .where(
                AccessCard.expiry_date < now,
                AccessCard.status.in_([CardStatus.UNUSED, CardStatus.USED]),
            )
            .values(status=CardStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def export_cards(self, card_ids: list[int] | None = None, status: CardStatus | None = None) -> bytes:
        """Spreadsheet of cards for the printers."""
        query = select(AccessCard).order_by(AccessCard.id)
        if card_ids:
            query = query.where(AccessCard.id.in_(card_ids))
        if status:
            query = query.where(AccessCard.status == status)
        cards = self.db.execute(query).scalars().all()

        wb = Workbook()
        ws = wb.active
        ws.title = "Access Cards"

        # Write headers
        for col_idx, header in enumerate(EXPORT_COLUMNS, start=1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.font = Font(bold=True)

        for row_idx, card in enumerate(cards, start=2):
            ws.cell(row=row_idx, column=1, value=card.serial_number)
            ws.cell(row=row_idx, column=2, value=card.pin)
            ws.cell(row=row_idx, column=3, value=card.status.value)
            ws.cell(row=row_idx, column=4, value=card.usage_limit)
            ws.cell(row=row_idx, column=5, value=as_utc(card.expiry_date).strftime("%Y-%m-%d"))
            ws.cell(row=row_idx, column=6, value=card.bound_student_id or "")

        for col_idx, width in enumerate(EXPORT_COLUMN_WIDTHS, start=1):
            ws.column_dimensions[get_column_letter(col_idx)].width = width

        output = BytesIO()
        wb.save(output)
        return output.getvalue()

    def delete_card(self, card_id: int) -> None:
        """Delete a card."""
        card = self.get_card(card_id)
        self.db.delete(card)
        self.db.flush()
