"""Add persisted payroll and payment reminder notifications

Revision ID: 002_add_payroll_and_reminders
Revises: 001_add_workflow_subject
Create Date: 2026-10-17

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_add_payroll_and_reminders"
down_revision: Union[str, None] = "001_add_workflow_subject"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(14, 2)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _money(name: str, with_default: bool = True) -> sa.Column:
    if with_default:
        return sa.Column(name, MONEY, nullable=False, server_default="0")
    return sa.Column(name, MONEY, nullable=False)


def upgrade() -> None:
    """Create payroll tables and extend notification and audit enums."""
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("employee_number", sa.String(20), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("job_title", sa.String(100), nullable=False),
        sa.Column("employment_type", sa.String(50), nullable=False, server_default="Permanent"),
        sa.Column("kra_pin", sa.String(11), nullable=False),
        sa.Column("national_id", sa.String(8), nullable=False),
        sa.Column("nssf_number", sa.String(10), nullable=True),
        sa.Column("sha_number", sa.String(50), nullable=True),
        _money("basic_salary"),
        _money("housing_allowance"),
        _money("transport_allowance"),
        _money("other_taxable_allowances"),
        _money("non_taxable_allowances"),
        sa.Column("bank_name", sa.String(100), nullable=True),
        sa.Column("bank_account", sa.String(50), nullable=True),
        sa.Column("hire_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "employee_number", name="uq_employee_tenant_number"),
    )
    op.create_index("ix_employees_tenant_id", "employees", ["tenant_id"])

    op.create_table(
        "employee_deductions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("deduction_name", sa.String(100), nullable=False),
        sa.Column("deduction_type", sa.String(50), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_employee_deductions_tenant_id", "employee_deductions", ["tenant_id"])
    op.create_index("ix_employee_deductions_employee_id", "employee_deductions", ["employee_id"])

    op.create_table(
        "payroll_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employees.id"), nullable=False),
        sa.Column("pay_period_year", sa.Integer(), nullable=False),
        sa.Column("pay_period_month", sa.Integer(), nullable=False),
        _money("basic_salary", with_default=False),
        _money("housing_allowance"),
        _money("transport_allowance"),
        _money("other_taxable_allowances"),
        _money("non_taxable_allowances"),
        _money("overtime_pay"),
        _money("bonus"),
        _money("gross_pay", with_default=False),
        _money("taxable_income", with_default=False),
        _money("paye", with_default=False),
        _money("nssf_employee", with_default=False),
        _money("nssf_employer", with_default=False),
        _money("sha_deduction", with_default=False),
        _money("housing_levy_employee", with_default=False),
        _money("housing_levy_employer", with_default=False),
        _money("personal_relief", with_default=False),
        _money("insurance_relief"),
        _money("other_deductions"),
        _money("total_deductions", with_default=False),
        _money("net_pay", with_default=False),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("approved_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "employee_id", "pay_period_year", "pay_period_month", name="uq_payroll_employee_period"
        ),
    )
    op.create_index("ix_payroll_records_tenant_id", "payroll_records", ["tenant_id"])
    op.create_index("ix_payroll_records_employee_id", "payroll_records", ["employee_id"])
    op.create_index("ix_payroll_records_pay_period_year", "payroll_records", ["pay_period_year"])
    op.create_index("ix_payroll_records_pay_period_month", "payroll_records", ["pay_period_month"])

    op.execute("ALTER TYPE notificationtype ADD VALUE IF NOT EXISTS 'payment_reminder'")
    for value in ("employee_created", "payroll_processed", "payroll_approved"):
        op.execute(f"ALTER TYPE activityaction ADD VALUE IF NOT EXISTS '{value}'")


def downgrade() -> None:
    """Drop payroll tables."""
    op.drop_table("payroll_records")
    op.drop_table("employee_deductions")
    op.drop_table("employees")
    # PostgreSQL does not support removing values from enums
