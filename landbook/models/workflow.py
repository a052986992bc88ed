"""
ReconciliationWorkflow: one row per cancel/transfer/refund request.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import JSON, ForeignKey, String, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from landbook.models.base import BaseModel, TenantMixin


class WorkflowKind(str, Enum):
    CANCEL = "cancel"
    TRANSFER = "transfer"
    REFUND_UPDATE = "refund_update"


class WorkflowStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ReconciliationWorkflow(BaseModel, TenantMixin):
    """
    Tracks a multi-step reconciliation request.

    The idempotency key is unique per tenant: a retried request finds the
    completed row and gets its stored result back instead of writing again.
    """

    __tablename__ = "reconciliation_workflows"
    __table_args__ = (
        UniqueConstraint("tenant_id", "idempotency_key", name="uq_workflow_tenant_key"),
    )

    kind: Mapped[WorkflowKind] = mapped_column(
        SQLAlchemyEnum(
            WorkflowKind,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    idempotency_key: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
    )
    status: Mapped[WorkflowStatus] = mapped_column(
        SQLAlchemyEnum(
            WorkflowStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=WorkflowStatus.IN_PROGRESS,
        nullable=False,
    )
    steps: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered names of completed steps",
    )
    result: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Ids and amounts produced by the workflow",
    )
    requested_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    plot_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("plots.id"),
        nullable=True,
        index=True,
        comment="Plot whose sale was cancelled or transferred",
    )
    client_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id"),
        nullable=True,
        comment="Sale that occupied the plot when the workflow ran",
    )

    def record_step(self, name: str) -> None:
        # Reassign so the JSON column is flagged dirty
        self.steps = [*(self.steps or []), name]

    def __repr__(self) -> str:
        return f"<ReconciliationWorkflow(id={self.id}, kind={self.kind}, status={self.status})>"
