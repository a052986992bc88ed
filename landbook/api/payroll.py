"""Payroll endpoints: the stateless calculator, employees and monthly runs."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.api.errors import http_error
from landbook.auth.context import RequestContext
from landbook.auth.dependencies import require_admin, require_tenant_user
from landbook.db import get_db
from landbook.schemas import (
    DeductionCreate,
    DeductionResponse,
    EmployeeCreate,
    EmployeeResponse,
    PayrollPeriod,
    PayrollRecordResponse,
    PayrollRequest,
    PayrollResponse,
    PayrollRunResponse,
)
from landbook.services import payroll_runs
from landbook.services.errors import LandbookError
from landbook.services.payroll import PayrollInput, calculate_payroll

router = APIRouter(prefix="/payroll", tags=["Payroll"])


@router.post("/calculate", response_model=PayrollResponse)
async def calculate(
    data: PayrollRequest,
    ctx: RequestContext = Depends(require_tenant_user),
):
    """Monthly statutory deductions and net pay for one employee."""
    result = calculate_payroll(
        PayrollInput(
            basic_salary=data.basic_salary,
            housing_allowance=data.housing_allowance,
            transport_allowance=data.transport_allowance,
            other_taxable_allowances=data.other_taxable_allowances,
            non_taxable_allowances=data.non_taxable_allowances,
            overtime_pay=data.overtime_pay,
            bonus=data.bonus,
            other_deductions=data.other_deductions,
            insurance_relief=data.insurance_relief,
        )
    )
    return PayrollResponse.model_validate(result)


# ── Employees ────────────────────────────────────────────


@router.post("/employees", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    data: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    try:
        employee = await payroll_runs.create_employee(
            db, ctx, payroll_runs.EmployeeInput(**data.model_dump())
        )
    except LandbookError as e:
        raise http_error(e) from e
    return EmployeeResponse.model_validate(employee)


@router.get("/employees", response_model=List[EmployeeResponse])
async def list_employees(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
    active_only: bool = Query(False),
):
    items = await payroll_runs.list_employees(db, ctx, active_only=active_only)
    return [EmployeeResponse.model_validate(e) for e in items]


@router.post("/employees/{employee_id}/deactivate", response_model=EmployeeResponse)
async def deactivate_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    try:
        employee = await payroll_runs.deactivate_employee(db, ctx, employee_id)
    except LandbookError as e:
        raise http_error(e) from e
    return EmployeeResponse.model_validate(employee)


@router.post(
    "/employees/{employee_id}/deductions",
    response_model=DeductionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_deduction(
    employee_id: int,
    data: DeductionCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    try:
        deduction = await payroll_runs.add_deduction(
            db,
            ctx,
            employee_id,
            deduction_name=data.deduction_name,
            deduction_type=data.deduction_type,
            amount=data.amount,
            is_recurring=data.is_recurring,
            start_date=data.start_date,
            end_date=data.end_date,
        )
    except LandbookError as e:
        raise http_error(e) from e
    return DeductionResponse.model_validate(deduction)


@router.get("/employees/{employee_id}/deductions", response_model=List[DeductionResponse])
async def list_deductions(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    try:
        items = await payroll_runs.list_deductions(db, ctx, employee_id)
    except LandbookError as e:
        raise http_error(e) from e
    return [DeductionResponse.model_validate(d) for d in items]


# ── Payroll runs ─────────────────────────────────────────


@router.post("/runs", response_model=PayrollRunResponse, status_code=status.HTTP_201_CREATED)
async def process_payroll(
    data: PayrollPeriod,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    """Process a month for every active employee not yet paid for it."""
    try:
        run = await payroll_runs.process_payroll(db, ctx, data.year, data.month)
    except LandbookError as e:
        raise http_error(e) from e
    return PayrollRunResponse(
        year=run.year,
        month=run.month,
        records=[PayrollRecordResponse.model_validate(r) for r in run.records],
        skipped_employee_ids=run.skipped_employee_ids,
    )


@router.post("/runs/approve", response_model=List[PayrollRecordResponse])
async def approve_payroll_month(
    data: PayrollPeriod,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    try:
        records = await payroll_runs.approve_payroll_month(db, ctx, data.year, data.month)
    except LandbookError as e:
        raise http_error(e) from e
    return [PayrollRecordResponse.model_validate(r) for r in records]


@router.get("/records", response_model=List[PayrollRecordResponse])
async def list_payroll_records(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    employee_id: Optional[int] = Query(None),
):
    items = await payroll_runs.list_payroll_records(
        db, ctx, year=year, month=month, employee_id=employee_id
    )
    return [PayrollRecordResponse.model_validate(r) for r in items]


@router.post("/records/{record_id}/approve", response_model=PayrollRecordResponse)
async def approve_payroll_record(
    record_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    try:
        record = await payroll_runs.approve_payroll_record(db, ctx, record_id)
    except LandbookError as e:
        raise http_error(e) from e
    return PayrollRecordResponse.model_validate(record)
