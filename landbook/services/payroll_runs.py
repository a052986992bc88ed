"""
Employees, recurring deductions and monthly payroll runs.

A run computes one PayrollRecord per active employee with
``calculate_payroll``. Employees already paid for the month are skipped,
so re-running a month only fills the gaps. Approval locks a record;
locked records are never recalculated.
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.models import ActivityAction, Employee, EmployeeDeduction, PayrollRecord
from landbook.services.errors import (
    ConflictError,
    EmployeeNotFoundError,
    InvalidAmountError,
    InvalidPayPeriodError,
    PayrollLockedError,
    PayrollRecordNotFoundError,
    ValidationFailed,
)
from landbook.services.payroll import (
    PayrollInput,
    calculate_payroll,
    validate_kra_pin,
    validate_national_id,
    validate_nssf_number,
)
from landbook.services.refunds import ZERO, quantize
from landbook.utils.audit import log_action
from landbook.utils.references import format_employee_number

logger = logging.getLogger(__name__)


@dataclass
class EmployeeInput:
    full_name: str
    job_title: str
    kra_pin: str
    national_id: str
    basic_salary: Decimal
    housing_allowance: Decimal = ZERO
    transport_allowance: Decimal = ZERO
    other_taxable_allowances: Decimal = ZERO
    non_taxable_allowances: Decimal = ZERO
    employment_type: str = "Permanent"
    nssf_number: Optional[str] = None
    sha_number: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    hire_date: Optional[date] = None


@dataclass
class PayrollRun:
    """Outcome of processing one pay period."""

    year: int
    month: int
    records: list[PayrollRecord] = field(default_factory=list)
    skipped_employee_ids: list[int] = field(default_factory=list)


def period_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a pay period."""
    if not 1 <= month <= 12 or not 2000 <= year <= 2100:
        raise InvalidPayPeriodError(year, month)
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


# ── Employees ────────────────────────────────────────────


async def create_employee(
    db: AsyncSession,
    ctx: RequestContext,
    data: EmployeeInput,
) -> Employee:
    """
    Add an employee with the next EMP-YYNNNN number for the tenant.

    Raises:
        InvalidAmountError, ValidationFailed: bad salary or identifier
        ConflictError: employee number taken by a concurrent insert
    """
    for name in (
        "basic_salary",
        "housing_allowance",
        "transport_allowance",
        "other_taxable_allowances",
        "non_taxable_allowances",
    ):
        amount = getattr(data, name)
        if amount is None or amount < 0:
            raise InvalidAmountError(name, amount)
    if not validate_kra_pin(data.kra_pin):
        raise ValidationFailed(f"Invalid KRA PIN: {data.kra_pin}")
    if not validate_national_id(data.national_id):
        raise ValidationFailed(f"Invalid national ID: {data.national_id}")
    if data.nssf_number and not validate_nssf_number(data.nssf_number):
        raise ValidationFailed(f"Invalid NSSF number: {data.nssf_number}")

    existing = await db.scalar(
        select(func.count()).select_from(Employee).where(Employee.tenant_id == ctx.tenant_id)
    )
    hired = data.hire_date or date.today()
    employee = Employee(
        tenant_id=ctx.tenant_id,
        employee_number=format_employee_number(hired.year, (existing or 0) + 1),
        full_name=data.full_name,
        job_title=data.job_title,
        employment_type=data.employment_type,
        kra_pin=data.kra_pin.upper(),
        national_id=data.national_id,
        nssf_number=data.nssf_number,
        sha_number=data.sha_number,
        basic_salary=quantize(data.basic_salary),
        housing_allowance=quantize(data.housing_allowance),
        transport_allowance=quantize(data.transport_allowance),
        other_taxable_allowances=quantize(data.other_taxable_allowances),
        non_taxable_allowances=quantize(data.non_taxable_allowances),
        bank_name=data.bank_name,
        bank_account=data.bank_account,
        hire_date=data.hire_date,
        is_active=True,
    )
    db.add(employee)
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError("Employee number already taken, retry the request") from e

    await log_action(
        db,
        ctx,
        ActivityAction.EMPLOYEE_CREATED,
        entity_type="employee",
        entity_id=employee.id,
        details={"employee_number": employee.employee_number, "full_name": employee.full_name},
    )
    logger.info(f"Created employee {employee.employee_number} for tenant {ctx.tenant_id}")
    return employee


async def get_employee(
    db: AsyncSession,
    ctx: RequestContext,
    employee_id: int,
) -> Employee:
    employee = (
        await db.execute(
            select(Employee).where(Employee.id == employee_id, Employee.tenant_id == ctx.tenant_id)
        )
    ).scalar_one_or_none()
    if not employee:
        raise EmployeeNotFoundError(employee_id)
    return employee


async def list_employees(
    db: AsyncSession,
    ctx: RequestContext,
    active_only: bool = False,
) -> Sequence[Employee]:
    query = select(Employee).where(Employee.tenant_id == ctx.tenant_id)
    if active_only:
        query = query.where(Employee.is_active.is_(True))
    result = await db.execute(query.order_by(Employee.full_name, Employee.id))
    return result.scalars().all()


async def deactivate_employee(
    db: AsyncSession,
    ctx: RequestContext,
    employee_id: int,
) -> Employee:
    """Leave the employee out of future payroll runs; history is kept."""
    employee = await get_employee(db, ctx, employee_id)
    employee.is_active = False
    await db.flush()
    logger.info(f"Deactivated employee {employee.employee_number}")
    return employee


# ── Deductions ───────────────────────────────────────────


async def add_deduction(
    db: AsyncSession,
    ctx: RequestContext,
    employee_id: int,
    deduction_name: str,
    deduction_type: str,
    amount: Decimal,
    is_recurring: bool = True,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> EmployeeDeduction:
    """
    Attach a loan, SACCO or advance deduction to an employee.

    A one-off deduction (not recurring) with a start date applies only in
    that month.
    """
    employee = await get_employee(db, ctx, employee_id)
    if amount is None or amount <= 0:
        raise InvalidAmountError("amount", amount)
    if start_date and end_date and end_date < start_date:
        raise ValidationFailed("Deduction end date is before its start date")

    deduction = EmployeeDeduction(
        tenant_id=ctx.tenant_id,
        employee_id=employee.id,
        deduction_name=deduction_name,
        deduction_type=deduction_type,
        amount=quantize(amount),
        is_recurring=is_recurring,
        is_active=True,
        start_date=start_date,
        end_date=end_date,
    )
    db.add(deduction)
    await db.flush()
    return deduction


async def list_deductions(
    db: AsyncSession,
    ctx: RequestContext,
    employee_id: int,
) -> Sequence[EmployeeDeduction]:
    employee = await get_employee(db, ctx, employee_id)
    result = await db.execute(
        select(EmployeeDeduction)
        .where(
            EmployeeDeduction.employee_id == employee.id,
            EmployeeDeduction.tenant_id == ctx.tenant_id,
        )
        .order_by(EmployeeDeduction.id)
    )
    return result.scalars().all()


def deduction_applies(deduction: EmployeeDeduction, first: date, last: date) -> bool:
    if not deduction.is_active:
        return False
    if deduction.start_date and deduction.start_date > last:
        return False
    if deduction.end_date and deduction.end_date < first:
        return False
    if not deduction.is_recurring and deduction.start_date:
        return first <= deduction.start_date <= last
    return True


async def _deductions_by_employee(
    db: AsyncSession,
    ctx: RequestContext,
    employee_ids: Sequence[int],
    first: date,
    last: date,
) -> dict[int, Decimal]:
    result = await db.execute(
        select(EmployeeDeduction).where(
            EmployeeDeduction.tenant_id == ctx.tenant_id,
            EmployeeDeduction.employee_id.in_(employee_ids),
        )
    )
    totals: dict[int, Decimal] = {}
    for deduction in result.scalars().all():
        if deduction_applies(deduction, first, last):
            totals[deduction.employee_id] = totals.get(deduction.employee_id, ZERO) + deduction.amount
    return totals


# ── Payroll runs ─────────────────────────────────────────


async def process_payroll(
    db: AsyncSession,
    ctx: RequestContext,
    year: int,
    month: int,
) -> PayrollRun:
    """
    Create payroll records for every active employee in a month.

    Employees hired after the month ends, and employees who already have
    a record for the month, are skipped.

    Raises:
        InvalidPayPeriodError
    """
    first, last = period_bounds(year, month)

    employees = (
        await db.execute(
            select(Employee)
            .where(
                Employee.tenant_id == ctx.tenant_id,
                Employee.is_active.is_(True),
                or_(Employee.hire_date.is_(None), Employee.hire_date <= last),
            )
            .order_by(Employee.id)
        )
    ).scalars().all()

    already_paid = set(
        (
            await db.execute(
                select(PayrollRecord.employee_id).where(
                    PayrollRecord.tenant_id == ctx.tenant_id,
                    PayrollRecord.pay_period_year == year,
                    PayrollRecord.pay_period_month == month,
                )
            )
        ).scalars().all()
    )
    deductions = await _deductions_by_employee(db, ctx, [e.id for e in employees], first, last)

    run = PayrollRun(year=year, month=month)
    for employee in employees:
        if employee.id in already_paid:
            run.skipped_employee_ids.append(employee.id)
            continue

        earnings = PayrollInput(
            basic_salary=employee.basic_salary,
            housing_allowance=employee.housing_allowance,
            transport_allowance=employee.transport_allowance,
            other_taxable_allowances=employee.other_taxable_allowances,
            non_taxable_allowances=employee.non_taxable_allowances,
            other_deductions=deductions.get(employee.id, ZERO),
        )
        result = calculate_payroll(earnings)
        record = PayrollRecord(
            tenant_id=ctx.tenant_id,
            employee_id=employee.id,
            pay_period_year=year,
            pay_period_month=month,
            basic_salary=earnings.basic_salary,
            housing_allowance=earnings.housing_allowance,
            transport_allowance=earnings.transport_allowance,
            other_taxable_allowances=earnings.other_taxable_allowances,
            non_taxable_allowances=earnings.non_taxable_allowances,
            overtime_pay=earnings.overtime_pay,
            bonus=earnings.bonus,
            gross_pay=result.gross_pay,
            taxable_income=result.taxable_income,
            paye=result.paye,
            nssf_employee=result.nssf_employee,
            nssf_employer=result.nssf_employer,
            sha_deduction=result.sha_deduction,
            housing_levy_employee=result.housing_levy_employee,
            housing_levy_employer=result.housing_levy_employer,
            personal_relief=result.personal_relief,
            insurance_relief=result.insurance_relief,
            other_deductions=result.other_deductions,
            total_deductions=result.total_deductions,
            net_pay=result.net_pay,
            is_locked=False,
            created_by=ctx.user_id,
        )
        db.add(record)
        run.records.append(record)

    await db.flush()

    await log_action(
        db,
        ctx,
        ActivityAction.PAYROLL_PROCESSED,
        entity_type="payroll",
        details={
            "period": f"{year}-{month:02d}",
            "processed": len(run.records),
            "skipped": len(run.skipped_employee_ids),
            "total_net_pay": sum((r.net_pay for r in run.records), ZERO),
        },
    )
    logger.info(
        f"Payroll {year}-{month:02d} for tenant {ctx.tenant_id}: "
        f"{len(run.records)} processed, {len(run.skipped_employee_ids)} skipped"
    )
    return run


async def list_payroll_records(
    db: AsyncSession,
    ctx: RequestContext,
    year: Optional[int] = None,
    month: Optional[int] = None,
    employee_id: Optional[int] = None,
) -> Sequence[PayrollRecord]:
    query = select(PayrollRecord).where(PayrollRecord.tenant_id == ctx.tenant_id)
    if year is not None:
        query = query.where(PayrollRecord.pay_period_year == year)
    if month is not None:
        query = query.where(PayrollRecord.pay_period_month == month)
    if employee_id is not None:
        query = query.where(PayrollRecord.employee_id == employee_id)
    result = await db.execute(
        query.order_by(
            PayrollRecord.pay_period_year.desc(),
            PayrollRecord.pay_period_month.desc(),
            PayrollRecord.employee_id,
        )
    )
    return result.scalars().all()


def _lock(record: PayrollRecord, ctx: RequestContext, now: datetime) -> None:
    record.is_locked = True
    record.approved_by = ctx.user_id
    record.approved_at = now


async def approve_payroll_record(
    db: AsyncSession,
    ctx: RequestContext,
    record_id: int,
) -> PayrollRecord:
    """
    Lock one payroll record.

    Raises:
        PayrollRecordNotFoundError, PayrollLockedError
    """
    record = (
        await db.execute(
            select(PayrollRecord)
            .where(PayrollRecord.id == record_id, PayrollRecord.tenant_id == ctx.tenant_id)
            .with_for_update()
        )
    ).scalar_one_or_none()
    if not record:
        raise PayrollRecordNotFoundError(record_id)
    if record.is_locked:
        raise PayrollLockedError(record_id)

    _lock(record, ctx, datetime.now(timezone.utc))
    await db.flush()

    await log_action(
        db,
        ctx,
        ActivityAction.PAYROLL_APPROVED,
        entity_type="payroll_record",
        entity_id=record.id,
        details={"employee_id": record.employee_id, "net_pay": record.net_pay},
    )
    logger.info(f"Approved payroll record {record.id}")
    return record


async def approve_payroll_month(
    db: AsyncSession,
    ctx: RequestContext,
    year: int,
    month: int,
) -> list[PayrollRecord]:
    """Lock every unapproved record of a month. Returns the records locked now."""
    period_bounds(year, month)
    result = await db.execute(
        select(PayrollRecord)
        .where(
            PayrollRecord.tenant_id == ctx.tenant_id,
            PayrollRecord.pay_period_year == year,
            PayrollRecord.pay_period_month == month,
            PayrollRecord.is_locked.is_(False),
        )
        .order_by(PayrollRecord.employee_id)
        .with_for_update()
    )
    records = list(result.scalars().all())

    now = datetime.now(timezone.utc)
    for record in records:
        _lock(record, ctx, now)
    await db.flush()

    if records:
        await log_action(
            db,
            ctx,
            ActivityAction.PAYROLL_APPROVED,
            entity_type="payroll",
            details={"period": f"{year}-{month:02d}", "records": [r.id for r in records]},
        )
    logger.info(f"Approved {len(records)} payroll records for {year}-{month:02d}")
    return records
