"""
Payroll models: employees, their recurring deductions and monthly
payroll records.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from landbook.models.base import BaseModel, Money, TenantMixin


class Employee(BaseModel, TenantMixin):
    """
    Salaried staff member.

    Earnings columns are the monthly defaults used when a payroll month
    is processed.
    """

    __tablename__ = "employees"
    __table_args__ = (
        UniqueConstraint("tenant_id", "employee_number", name="uq_employee_tenant_number"),
    )

    employee_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="EMP-YYNNNN",
    )
    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    job_title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    employment_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="Permanent",
    )
    kra_pin: Mapped[str] = mapped_column(
        String(11),
        nullable=False,
    )
    national_id: Mapped[str] = mapped_column(
        String(8),
        nullable=False,
    )
    nssf_number: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
    )
    sha_number: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    basic_salary: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    housing_allowance: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    transport_allowance: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    other_taxable_allowances: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    non_taxable_allowances: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0"),
    )
    bank_name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    bank_account: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    hire_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, number='{self.employee_number}', name='{self.full_name}')>"


class EmployeeDeduction(BaseModel, TenantMixin):
    """Loan, SACCO or advance deducted from net pay while active."""

    __tablename__ = "employee_deductions"

    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id"),
        nullable=False,
        index=True,
    )
    deduction_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    deduction_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
    )
    is_recurring: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    start_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    end_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<EmployeeDeduction(id={self.id}, name='{self.deduction_name}', amount={self.amount})>"


class PayrollRecord(BaseModel, TenantMixin):
    """
    One employee's payslip for one month.

    Figures are frozen at processing time; approval locks the record.
    """

    __tablename__ = "payroll_records"
    __table_args__ = (
        UniqueConstraint(
            "employee_id", "pay_period_year", "pay_period_month", name="uq_payroll_employee_period"
        ),
    )

    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id"),
        nullable=False,
        index=True,
    )
    pay_period_year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )
    pay_period_month: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )

    # Earnings
    basic_salary: Mapped[Decimal] = mapped_column(Money, nullable=False)
    housing_allowance: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    transport_allowance: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    other_taxable_allowances: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    non_taxable_allowances: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    overtime_pay: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    bonus: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    gross_pay: Mapped[Decimal] = mapped_column(Money, nullable=False)
    taxable_income: Mapped[Decimal] = mapped_column(Money, nullable=False)

    # Deductions
    paye: Mapped[Decimal] = mapped_column(Money, nullable=False)
    nssf_employee: Mapped[Decimal] = mapped_column(Money, nullable=False)
    nssf_employer: Mapped[Decimal] = mapped_column(Money, nullable=False)
    sha_deduction: Mapped[Decimal] = mapped_column(Money, nullable=False)
    housing_levy_employee: Mapped[Decimal] = mapped_column(Money, nullable=False)
    housing_levy_employer: Mapped[Decimal] = mapped_column(Money, nullable=False)
    personal_relief: Mapped[Decimal] = mapped_column(Money, nullable=False)
    insurance_relief: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    other_deductions: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    total_deductions: Mapped[Decimal] = mapped_column(Money, nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Money, nullable=False)

    # Approval
    is_locked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    approved_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<PayrollRecord(id={self.id}, employee_id={self.employee_id}, "
            f"period={self.pay_period_year}-{self.pay_period_month:02d}, net={self.net_pay})>"
        )
