"""
NotificationOutbox model for outgoing email-function calls.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from landbook.models.base import Base


class NotificationType(str, Enum):
    """Email templates understood by the send-email function."""
    PAYMENT_ADDED = "payment_added"
    CLIENT_UPDATE = "client_update"
    ACTIVITY_ALERT = "activity_alert"
    PAYMENT_REMINDER = "payment_reminder"


class OutboxStatus(str, Enum):
    """Status of an outgoing notification."""
    PENDING = "pending"  # Waiting to be sent
    SENT = "sent"        # Accepted by the email function
    SKIPPED = "skipped"  # No email function configured
    FAILED = "failed"    # Failed to send, not retried


class NotificationOutbox(Base):
    """
    Outgoing notification queue.

    Rows are added by the engine in the business transaction and
    dispatched by the outbox job.
    """

    __tablename__ = "notification_outbox"

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[int] = mapped_column(
        ForeignKey("tenants.id"),
        nullable=False,
        index=True,
    )
    type: Mapped[NotificationType] = mapped_column(
        SQLAlchemyEnum(
            NotificationType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    recipient: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
        comment="Email address; empty means the tenant's admin inbox",
    )
    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )
    status: Mapped[OutboxStatus] = mapped_column(
        SQLAlchemyEnum(
            OutboxStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=OutboxStatus.PENDING,
        nullable=False,
        index=True,
    )
    error_message: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Error details if send failed",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<NotificationOutbox(id={self.id}, type={self.type}, status={self.status})>"
