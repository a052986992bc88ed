"""Add plot and sale references to reconciliation workflows

Revision ID: 001_add_workflow_subject
Revises: 000_initial_schema
Create Date: 2026-10-17

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_add_workflow_subject"
down_revision: Union[str, None] = "000_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Record which plot and sale each cancel/transfer workflow acted on."""
    op.add_column(
        "reconciliation_workflows",
        sa.Column("plot_id", sa.Integer(), sa.ForeignKey("plots.id"), nullable=True),
    )
    op.add_column(
        "reconciliation_workflows",
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
    )
    op.create_index(
        "ix_reconciliation_workflows_plot_id", "reconciliation_workflows", ["plot_id"]
    )


def downgrade() -> None:
    """Remove workflow subject columns."""
    op.drop_index("ix_reconciliation_workflows_plot_id", table_name="reconciliation_workflows")
    op.drop_column("reconciliation_workflows", "client_id")
    op.drop_column("reconciliation_workflows", "plot_id")
