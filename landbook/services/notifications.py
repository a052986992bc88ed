"""
Outbound notifications through the send-email function.

Services queue rows in the business transaction with ``enqueue``; the
outbox job drains them with ``dispatch_pending``. Delivery is
fire-and-forget: failures are logged and recorded, never retried.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import requests
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.config import settings
from landbook.models import NotificationOutbox, NotificationType, OutboxStatus
from landbook.utils.audit import to_jsonable

logger = logging.getLogger(__name__)


def enqueue(
    db: AsyncSession,
    tenant_id: int,
    type: NotificationType,
    payload: dict[str, Any],
    recipient: Optional[str] = None,
) -> NotificationOutbox:
    """Queue a notification; commit happens in the calling context."""
    message = NotificationOutbox(
        tenant_id=tenant_id,
        type=type,
        recipient=recipient,
        payload=to_jsonable(payload),
        status=OutboxStatus.PENDING,
    )
    db.add(message)
    return message


def post_to_email_function(message: NotificationOutbox) -> dict:
    """Blocking call to the email function. Runs in a worker thread."""
    headers = {"Content-Type": "application/json"}
    if settings.email_function_key:
        headers["Authorization"] = f"Bearer {settings.email_function_key}"

    response = requests.post(
        settings.email_function_url,
        json={
            "type": message.type.value,
            "recipient": message.recipient,
            "data": message.payload,
        },
        headers=headers,
        timeout=settings.email_timeout_seconds,
    )
    response.raise_for_status()
    body = response.json() if response.content else {}
    return body if isinstance(body, dict) else {}


async def process_outbox_message(message: NotificationOutbox) -> bool:
    """
    Deliver a single outbox message.

    Returns:
        True if the email function accepted it (or delivery was skipped)
    """
    if not settings.email_function_url:
        message.status = OutboxStatus.SKIPPED
        logger.debug(f"Notification {message.id} skipped: no email function configured")
        return True

    try:
        body = await asyncio.to_thread(post_to_email_function, message)
    except requests.RequestException as e:
        message.status = OutboxStatus.FAILED
        message.error_message = str(e)[:1000]
        logger.error(f"Notification {message.id} ({message.type.value}) failed: {e}")
        return False

    if body.get("skipped"):
        message.status = OutboxStatus.SKIPPED
        logger.info(f"Notification {message.id} skipped by email function: {body.get('message')}")
    else:
        message.status = OutboxStatus.SENT
        message.sent_at = datetime.now(timezone.utc)
        logger.info(f"Notification {message.id} ({message.type.value}) sent")
    return True


async def dispatch_pending(db: AsyncSession, limit: Optional[int] = None) -> int:
    """Send up to ``limit`` pending notifications. Returns how many were sent."""
    result = await db.execute(
        select(NotificationOutbox)
        .where(NotificationOutbox.status == OutboxStatus.PENDING)
        .order_by(NotificationOutbox.id)
        .limit(limit or settings.outbox_batch_size)
    )
    messages = result.scalars().all()

    delivered = 0
    for message in messages:
        if await process_outbox_message(message):
            delivered += 1

    await db.flush()
    return delivered
