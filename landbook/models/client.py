"""
Client (sale) and Payment models.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from landbook.models.base import Base, BaseModel, Money, TenantMixin


class ClientStatus(str, Enum):
    """Lifecycle of a sale."""
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Client(BaseModel, TenantMixin):
    """
    A buyer's commitment to a plot (the "sale").

    balance == total_price - discount - total_paid, kept by the payment
    path and the reconciliation engine. Cancelled sales are excluded from
    active-balance aggregations.
    """

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
    )
    phone: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="",
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(200),
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
    unit_price: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    number_of_plots: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )
    total_price: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    discount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    total_paid: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    percent_paid: Mapped[Decimal] = mapped_column(
        Numeric(6, 2),
        nullable=False,
        default=Decimal("0"),
    )
    balance: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )

    # Sales agent and commission
    sales_agent: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
    )
    commission: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    commission_received: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    commission_balance: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )

    # Payment plan
    payment_period: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="",
    )
    completion_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    next_payment_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    sale_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[ClientStatus] = mapped_column(
        SQLAlchemyEnum(
            ClientStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ClientStatus.ONGOING,
        nullable=False,
        index=True,
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="client",
        order_by="Payment.id",
    )

    @property
    def discounted_price(self) -> Decimal:
        return self.total_price - self.discount

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name='{self.name}', status={self.status})>"


class Payment(Base, TenantMixin):
    """Append-only record of money received against a sale."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    payment_method: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    previous_balance: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    new_balance: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    receipt_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    agent_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
    )
    authorized_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    client: Mapped["Client"] = relationship(
        "Client",
        back_populates="payments",
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, client_id={self.client_id}, amount={self.amount})>"
