"""APScheduler configuration for background card maintenance."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_portal.core.config import settings
from school_portal.core.database import SessionLocal
from school_portal.services.access_card import AccessCardService

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


def get_db_session() -> Session:
    """Get a database session for scheduler jobs."""
    return SessionLocal()


def expire_overdue_cards_job() -> int:
    """
    Job to mark cards past their expiry date as expired.
    Runs once a day; verification still checks expiry on every request.
    """
    logger.info("Starting card expiry sweep")

    db = get_db_session()
    try:
        service = AccessCardService(db, settings.card_policy, batch_max=settings.CARD_BATCH_MAX)
        count = service.expire_overdue()
        db.commit()
        logger.info(f"Expired {count} overdue cards")
        return count
    except SQLAlchemyError as e:
        logger.exception(f"Error expiring overdue cards: {e}")
        db.rollback()
        return 0
    finally:
        db.close()


def init_scheduler() -> AsyncIOScheduler:
    """Initialize and configure the scheduler."""
    global scheduler

    scheduler = AsyncIOScheduler(
        timezone=settings.SCHEDULER_TIMEZONE,
        job_defaults={
            "coalesce": True,  # Combine missed runs
            "max_instances": 1,  # Only one instance of each job at a time
            "misfire_grace_time": 3600,  # Allow 1 hour grace period for missed jobs
        }
    )

    scheduler.add_job(
        expire_overdue_cards_job,
        trigger=CronTrigger(hour=0, minute=15),
        id="expire_overdue_cards",
        name="Expire overdue access cards",
        replace_existing=True,
    )

    logger.info(f"Scheduler initialized with card expiry sweep ({settings.SCHEDULER_TIMEZONE})")
    return scheduler


def start_scheduler():
    """Start the scheduler."""
    global scheduler
    if scheduler is None:
        scheduler = init_scheduler()

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler():
    """Stop the scheduler gracefully."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped")
