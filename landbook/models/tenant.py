"""
Tenant and operator (user) models.
"""

from enum import Enum
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from landbook.models.base import BaseModel


class UserRole(str, Enum):
    """Operator roles for access control."""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    STAFF = "staff"


class Tenant(BaseModel):
    """
    A company using the back-office.

    All business rows (projects, plots, clients, payments, expenses,
    cancelled sales) carry the owning tenant_id.
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    users: Mapped[List["User"]] = relationship(
        "User",
        back_populates="tenant",
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug='{self.slug}')>"


class User(BaseModel):
    """
    Operator account.

    - super_admin: provisions tenants, not bound to one
    - admin: cancels/transfers sales and processes refunds within a tenant
    - staff: records payments and reads tenant data
    """

    __tablename__ = "users"

    tenant_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("tenants.id"),
        nullable=True,
        index=True,
    )
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        SQLAlchemyEnum(
            UserRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=UserRole.STAFF,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    tenant: Mapped[Optional["Tenant"]] = relationship(
        "Tenant",
        back_populates="users",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role={self.role})>"
