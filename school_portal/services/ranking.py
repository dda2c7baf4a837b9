"""Class position recalculation."""

import logging
import math
from typing import Any, Literal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_portal.core.exceptions import StorageError
from school_portal.models.result import Result

logger = logging.getLogger(__name__)

TieBreak = Literal["load_order", "shared"]


def parse_average(value: Any) -> float:
    """Average as a float; missing or non-numeric values count as 0."""
    if value is None:
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def rank_cohort(averages: list[float], tie_break: TieBreak = "load_order") -> list[int]:
    """Positions (1-based) for each average, in input order.

    Sorting is stable and descending. With ``load_order`` equal averages
    keep their input order and get consecutive positions; with ``shared``
    they share the better position (1, 1, 3).
    """
    order = sorted(range(len(averages)), key=lambda i: -averages[i])
    positions = [0] * len(averages)
    for rank, idx in enumerate(order, start=1):
        if tie_break == "shared" and rank > 1:
            previous = order[rank - 2]
            if averages[previous] == averages[idx]:
                positions[idx] = positions[previous]
                continue
        positions[idx] = rank
    return positions


class RankingService:
    """Keeps position/out_of consistent with each cohort's averages."""

    def __init__(self, db: Session, tie_break: TieBreak = "load_order"):
        self.db = db
        self.tie_break = tie_break

    def load_cohort(self, class_name: str, session: str, term: str) -> list[Result]:
        """Cohort members in natural load (insertion) order."""
        result = self.db.execute(
            select(Result)
            .where(
                Result.class_name == class_name,
                Result.session == session,
                Result.term == term,
            )
            .order_by(Result.id)
        )
        return list(result.scalars().all())

    def recalculate(self, class_name: str, session: str, term: str) -> int:
        """Rewrite position and out_of for a whole cohort in one transaction.

        Returns the cohort size.
        """
        try:
            cohort = self.load_cohort(class_name, session, term)
            positions = rank_cohort(
                [parse_average(r.average) for r in cohort],
                self.tie_break,
            )
            for record, position in zip(cohort, positions):
                record.position = position
                record.out_of = len(cohort)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"[RANKING] Recalculation failed for {class_name} / {session} / {term}: {e}")
            raise StorageError("Failed to recalculate class positions") from e

        logger.info(f"[RANKING] Recalculated {class_name} / {session} / {term}: {len(cohort)} results")
        return len(cohort)
