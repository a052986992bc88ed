"""
CancelledSale audit record.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from landbook.models.base import BaseModel, Money, TenantMixin


class RefundStatus(str, Enum):
    """Progress of the refund owed on a cancelled sale."""
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"
    NONE = "none"


class OutcomeType(str, Enum):
    """How a cancelled sale was resolved."""
    PENDING = "pending"
    REFUNDED = "refunded"
    PARTIAL_REFUND = "partial_refund"
    RETAINED = "retained"
    TRANSFERRED = "transferred"


class CancelledSale(BaseModel, TenantMixin):
    """
    Snapshot of a sale at the moment it was cancelled or transferred.

    Created once per cancellation, updated as the refund progresses,
    never deleted. net_refund == max(0, refund_amount - cancellation_fee).
    """

    __tablename__ = "cancelled_sales"

    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id"),
        nullable=True,
        index=True,
    )
    client_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    client_phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    project_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    plot_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    original_sale_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    cancellation_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    # Financial snapshot
    total_price: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    total_paid: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    refund_amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    cancellation_fee: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    net_refund: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    refund_status: Mapped[RefundStatus] = mapped_column(
        SQLAlchemyEnum(
            RefundStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=RefundStatus.PENDING,
        nullable=False,
        index=True,
    )
    outcome_type: Mapped[OutcomeType] = mapped_column(
        SQLAlchemyEnum(
            OutcomeType,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=OutcomeType.PENDING,
        nullable=False,
        index=True,
    )

    cancellation_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    cancelled_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    processed_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="First time money was disbursed for this cancellation",
    )
    transferred_to_client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id"),
        nullable=True,
    )
    workflow_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("reconciliation_workflows.id"),
        nullable=True,
    )

    @property
    def retained_amount(self) -> Decimal:
        return self.total_paid - self.net_refund

    def __repr__(self) -> str:
        return (
            f"<CancelledSale(id={self.id}, client_id={self.client_id}, "
            f"net_refund={self.net_refund}, refund_status={self.refund_status})>"
        )
