"""
ActivityLog model for tracking operator actions.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from landbook.models.base import Base


class ActivityAction(str, Enum):
    """Types of auditable actions."""
    CLIENT_CREATED = "client_created"
    CLIENT_UPDATED = "client_updated"
    PAYMENT_ADDED = "payment_added"
    PLOT_RETURNED = "plot_returned"
    SALE_CANCELLED = "sale_cancelled"
    SALE_TRANSFERRED = "sale_transferred"
    REFUND_UPDATED = "refund_updated"
    EXPENSE_CREATED = "expense_created"
    PROJECT_CREATED = "project_created"
    PLOTS_ADDED = "plots_added"
    TENANT_CREATED = "tenant_created"
    TENANT_DEACTIVATED = "tenant_deactivated"
    USER_CREATED = "user_created"
    EMPLOYEE_CREATED = "employee_created"
    PAYROLL_PROCESSED = "payroll_processed"
    PAYROLL_APPROVED = "payroll_approved"


class ActivityLog(Base):
    """
    Append-only log of operator actions.

    Written in the same transaction as the change it describes.
    """

    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("tenants.id"),
        nullable=True,
        index=True,
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    action: Mapped[ActivityAction] = mapped_column(
        SQLAlchemyEnum(
            ActivityAction,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    entity_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Type of entity affected (client, plot, cancelled_sale, ...)",
    )
    entity_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    details: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, user_id={self.user_id}, action={self.action})>"
