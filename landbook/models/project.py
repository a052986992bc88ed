"""
Project and Plot inventory models.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from landbook.models.base import BaseModel, Money, TenantMixin

if TYPE_CHECKING:
    from landbook.models.client import Client


class PlotStatus(str, Enum):
    """Availability of a plot."""
    AVAILABLE = "available"
    SOLD = "sold"
    RESERVED = "reserved"


class Project(BaseModel, TenantMixin):
    """A land project subdivided into plots."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
    )
    location: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        default="",
    )
    capacity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Planned number of plots",
    )
    total_plots: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Plots actually registered",
    )
    buying_price: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    plots: Mapped[List["Plot"]] = relationship(
        "Plot",
        back_populates="project",
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}')>"


class Plot(BaseModel, TenantMixin):
    """
    An inventory unit within a project.

    status == SOLD iff client_id is set. The reconciliation engine keeps
    the two in step inside a single transaction.
    """

    __tablename__ = "plots"
    __table_args__ = (
        UniqueConstraint("project_id", "plot_number", name="uq_plots_project_plot_number"),
    )

    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    plot_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    size: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="",
    )
    price: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    status: Mapped[PlotStatus] = mapped_column(
        SQLAlchemyEnum(
            PlotStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PlotStatus.AVAILABLE,
        nullable=False,
        index=True,
    )
    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id"),
        nullable=True,
        index=True,
    )
    sold_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    project: Mapped["Project"] = relationship(
        "Project",
        back_populates="plots",
    )
    client: Mapped[Optional["Client"]] = relationship(
        "Client",
        foreign_keys=[client_id],
    )

    def __repr__(self) -> str:
        return f"<Plot(id={self.id}, plot_number='{self.plot_number}', status={self.status})>"
