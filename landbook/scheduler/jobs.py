"""
Background job definitions using APScheduler.

Jobs include:
- Notification outbox dispatch
- Daily overdue payment reminders
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError

from landbook.config import settings
from landbook.db import get_db_context
from landbook.services.notifications import dispatch_pending
from landbook.services.payments import queue_payment_reminders

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def outbox_job():
    """Drain pending notifications to the email function."""
    logger.debug("Running outbox job")
    try:
        async with get_db_context() as db:
            delivered = await dispatch_pending(db)
            if delivered:
                logger.info(f"Outbox job: delivered {delivered} notifications")
    except SQLAlchemyError:
        logger.exception("Outbox job database error")


async def payment_reminder_job():
    """Queue reminders for overdue sales; the outbox job sends them."""
    logger.debug("Running payment reminder job")
    try:
        async with get_db_context() as db:
            queued = await queue_payment_reminders(db)
            logger.info(f"Payment reminder job: queued {queued} reminders")
    except SQLAlchemyError:
        logger.exception("Payment reminder job database error")


def setup_scheduler():
    """
    Configure and add all scheduled jobs.

    Called during application startup.
    """
    scheduler.add_job(
        outbox_job,
        trigger=IntervalTrigger(seconds=settings.outbox_interval_seconds),
        id="notification_outbox",
        name="Dispatch queued notifications",
        replace_existing=True,
        max_instances=1,
    )

    scheduler.add_job(
        payment_reminder_job,
        trigger=CronTrigger(hour=settings.payment_reminder_hour, minute=0),
        id="daily_payment_reminders",
        name="Queue overdue payment reminders",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    logger.info("Scheduler configured with jobs")
