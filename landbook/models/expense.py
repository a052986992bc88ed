"""
Expense model for general ledger outflows.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from landbook.models.base import BaseModel, Money, TenantMixin

REFUND_CATEGORY = "Refund"

EXPENSE_CATEGORIES = (
    "Commission Payout",
    "Office Supplies",
    "Utilities",
    "Rent",
    "Marketing",
    "Transport",
    "Salaries",
    "Legal Fees",
    "Maintenance",
    REFUND_CATEGORY,
    "Other",
)


class ExpenseStatus(str, Enum):
    """Whether the outflow has actually left the till."""
    PAID = "paid"
    PENDING = "pending"


class Expense(BaseModel, TenantMixin):
    """
    Money paid out by the company.

    Refund expenses point back at their cancelled sale through
    cancelled_sale_id; notes keep the human-readable trail.
    """

    __tablename__ = "expenses"

    expense_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    payment_method: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="Cash",
    )
    recipient: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )
    reference_number: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        index=True,
    )
    agent_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id"),
        nullable=True,
        index=True,
    )
    cancelled_sale_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("cancelled_sales.id"),
        nullable=True,
        index=True,
    )
    is_commission_payout: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    status: Mapped[ExpenseStatus] = mapped_column(
        SQLAlchemyEnum(
            ExpenseStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ExpenseStatus.PAID,
        nullable=False,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Expense(id={self.id}, category='{self.category}', amount={self.amount})>"
