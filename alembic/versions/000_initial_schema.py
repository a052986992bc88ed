"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(14, 2)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create all initial tables."""

    # Tenants and operators
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("role", sa.Enum("super_admin", "admin", "staff", name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_tenant_id", "users", ["tenant_id"])

    # Inventory
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("location", sa.String(200), nullable=False, server_default=""),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_plots", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("buying_price", MONEY, nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_projects_tenant_id", "projects", ["tenant_id"])
    op.create_index("ix_projects_name", "projects", ["name"])

    # Sales
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False, server_default=""),
        sa.Column("email", sa.String(200), nullable=True),
        sa.Column("project_name", sa.String(200), nullable=False),
        sa.Column("plot_number", sa.String(50), nullable=False),
        sa.Column("unit_price", MONEY, nullable=False, server_default="0"),
        sa.Column("number_of_plots", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("total_price", MONEY, nullable=False),
        sa.Column("discount", MONEY, nullable=False, server_default="0"),
        sa.Column("total_paid", MONEY, nullable=False, server_default="0"),
        sa.Column("percent_paid", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("balance", MONEY, nullable=False, server_default="0"),
        sa.Column("sales_agent", sa.String(100), nullable=False, server_default=""),
        sa.Column("commission", MONEY, nullable=False, server_default="0"),
        sa.Column("commission_received", MONEY, nullable=False, server_default="0"),
        sa.Column("commission_balance", MONEY, nullable=False, server_default="0"),
        sa.Column("payment_period", sa.String(50), nullable=False, server_default=""),
        sa.Column("completion_date", sa.Date(), nullable=True),
        sa.Column("next_payment_date", sa.Date(), nullable=True),
        sa.Column("sale_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("ongoing", "completed", "cancelled", name="clientstatus"),
            nullable=False,
            server_default="ongoing",
        ),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_clients_tenant_id", "clients", ["tenant_id"])
    op.create_index("ix_clients_name", "clients", ["name"])
    op.create_index("ix_clients_status", "clients", ["status"])

    op.create_table(
        "plots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("plot_number", sa.String(50), nullable=False),
        sa.Column("size", sa.String(50), nullable=False, server_default=""),
        sa.Column("price", MONEY, nullable=False),
        sa.Column(
            "status",
            sa.Enum("available", "sold", "reserved", name="plotstatus"),
            nullable=False,
            server_default="available",
        ),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("sold_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("project_id", "plot_number", name="uq_plots_project_plot_number"),
    )
    op.create_index("ix_plots_tenant_id", "plots", ["tenant_id"])
    op.create_index("ix_plots_project_id", "plots", ["project_id"])
    op.create_index("ix_plots_status", "plots", ["status"])
    op.create_index("ix_plots_client_id", "plots", ["client_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=False),
        sa.Column("payment_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("previous_balance", MONEY, nullable=False),
        sa.Column("new_balance", MONEY, nullable=False),
        sa.Column("receipt_number", sa.String(50), nullable=False),
        sa.Column("agent_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("authorized_by", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_payments_tenant_id", "payments", ["tenant_id"])
    op.create_index("ix_payments_client_id", "payments", ["client_id"])
    op.create_index("ix_payments_receipt_number", "payments", ["receipt_number"])

    # Reconciliation
    op.create_table(
        "reconciliation_workflows",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("cancel", "transfer", "refund_update", name="workflowkind"),
            nullable=False,
        ),
        sa.Column("idempotency_key", sa.String(128), nullable=False),
        sa.Column(
            "status",
            sa.Enum("in_progress", "completed", name="workflowstatus"),
            nullable=False,
            server_default="in_progress",
        ),
        sa.Column("steps", sa.JSON(), nullable=False),
        sa.Column("result", sa.JSON(), nullable=True),
        sa.Column("requested_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "idempotency_key", name="uq_workflow_tenant_key"),
    )
    op.create_index("ix_reconciliation_workflows_tenant_id", "reconciliation_workflows", ["tenant_id"])

    op.create_table(
        "cancelled_sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("client_name", sa.String(200), nullable=False),
        sa.Column("client_phone", sa.String(50), nullable=True),
        sa.Column("project_name", sa.String(200), nullable=False),
        sa.Column("plot_number", sa.String(50), nullable=False),
        sa.Column("original_sale_date", sa.Date(), nullable=True),
        sa.Column("cancellation_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("total_price", MONEY, nullable=False),
        sa.Column("total_paid", MONEY, nullable=False),
        sa.Column("refund_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("cancellation_fee", MONEY, nullable=False, server_default="0"),
        sa.Column("net_refund", MONEY, nullable=False, server_default="0"),
        sa.Column(
            "refund_status",
            sa.Enum("pending", "partial", "completed", "none", name="refundstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "outcome_type",
            sa.Enum(
                "pending", "refunded", "partial_refund", "retained", "transferred",
                name="outcometype",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("cancelled_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("processed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("transferred_to_client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column(
            "workflow_id",
            sa.Integer(),
            sa.ForeignKey("reconciliation_workflows.id"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_cancelled_sales_tenant_id", "cancelled_sales", ["tenant_id"])
    op.create_index("ix_cancelled_sales_client_id", "cancelled_sales", ["client_id"])
    op.create_index("ix_cancelled_sales_cancellation_date", "cancelled_sales", ["cancellation_date"])
    op.create_index("ix_cancelled_sales_refund_status", "cancelled_sales", ["refund_status"])
    op.create_index("ix_cancelled_sales_outcome_type", "cancelled_sales", ["outcome_type"])

    # Expenses
    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("expense_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=False, server_default="Cash"),
        sa.Column("recipient", sa.String(200), nullable=True),
        sa.Column("reference_number", sa.String(50), nullable=True),
        sa.Column("agent_id", sa.String(100), nullable=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("cancelled_sale_id", sa.Integer(), sa.ForeignKey("cancelled_sales.id"), nullable=True),
        sa.Column("is_commission_payout", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "status",
            sa.Enum("paid", "pending", name="expensestatus"),
            nullable=False,
            server_default="paid",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_expenses_tenant_id", "expenses", ["tenant_id"])
    op.create_index("ix_expenses_expense_date", "expenses", ["expense_date"])
    op.create_index("ix_expenses_category", "expenses", ["category"])
    op.create_index("ix_expenses_reference_number", "expenses", ["reference_number"])
    op.create_index("ix_expenses_client_id", "expenses", ["client_id"])
    op.create_index("ix_expenses_cancelled_sale_id", "expenses", ["cancelled_sale_id"])

    # Audit and notifications
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "action",
            sa.Enum(
                "client_created", "client_updated", "payment_added", "plot_returned",
                "sale_cancelled", "sale_transferred", "refund_updated", "expense_created",
                "project_created", "plots_added", "tenant_created", "tenant_deactivated",
                "user_created",
                name="activityaction",
            ),
            nullable=False,
        ),
        sa.Column("entity_type", sa.String(50), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_activity_logs_tenant_id", "activity_logs", ["tenant_id"])
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])

    op.create_table(
        "notification_outbox",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column(
            "type",
            sa.Enum("payment_added", "client_update", "activity_alert", name="notificationtype"),
            nullable=False,
        ),
        sa.Column("recipient", sa.String(200), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "sent", "skipped", "failed", name="outboxstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notification_outbox_tenant_id", "notification_outbox", ["tenant_id"])
    op.create_index("ix_notification_outbox_status", "notification_outbox", ["status"])


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        "notification_outbox",
        "activity_logs",
        "expenses",
        "cancelled_sales",
        "reconciliation_workflows",
        "payments",
        "plots",
        "clients",
        "projects",
        "users",
        "tenants",
    ):
        op.drop_table(table)

    for enum_name in (
        "outboxstatus",
        "notificationtype",
        "activityaction",
        "expensestatus",
        "outcometype",
        "refundstatus",
        "workflowstatus",
        "workflowkind",
        "plotstatus",
        "clientstatus",
        "userrole",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
