"""
Tests for employees, deductions and monthly payroll runs.
"""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select

from landbook.auth.context import RequestContext
from landbook.models import ActivityAction, ActivityLog, EmployeeDeduction, Tenant, UserRole
from landbook.services import payroll_runs
from landbook.services.errors import (
    EmployeeNotFoundError,
    InvalidAmountError,
    InvalidPayPeriodError,
    PayrollLockedError,
    PayrollRecordNotFoundError,
    ValidationFailed,
)
from landbook.services.payroll import PayrollInput, calculate_payroll

D = Decimal


def _employee(name="Mary Akinyi", salary="50000", **overrides):
    data = dict(
        full_name=name,
        job_title="Site Manager",
        kra_pin="a123456789b",
        national_id="12345678",
        nssf_number="123456789",
        basic_salary=D(salary),
        hire_date=date(2024, 1, 15),
    )
    data.update(overrides)
    return payroll_runs.EmployeeInput(**data)


@pytest_asyncio.fixture
async def staff(db_session, ctx):
    mary = await payroll_runs.create_employee(
        db_session, ctx, _employee(housing_allowance=D("5000"))
    )
    john = await payroll_runs.create_employee(
        db_session, ctx, _employee(name="John Otieno", salary="30000")
    )
    await db_session.commit()
    return mary, john


# ── Employees ────────────────────────────────────────────


class TestEmployees:
    @pytest.mark.asyncio
    async def test_numbers_are_sequential_per_tenant(self, staff):
        mary, john = staff

        assert mary.employee_number == "EMP-240001"
        assert john.employee_number == "EMP-240002"
        assert mary.kra_pin == "A123456789B"
        assert mary.is_active is True

    @pytest.mark.asyncio
    async def test_invalid_kra_pin_rejected(self, db_session, ctx):
        with pytest.raises(ValidationFailed, match="KRA PIN"):
            await payroll_runs.create_employee(db_session, ctx, _employee(kra_pin="123"))

    @pytest.mark.asyncio
    async def test_negative_salary_rejected(self, db_session, ctx):
        with pytest.raises(InvalidAmountError):
            await payroll_runs.create_employee(db_session, ctx, _employee(salary="-1"))

    @pytest.mark.asyncio
    async def test_active_only_listing(self, db_session, ctx, staff):
        mary, john = staff
        await payroll_runs.deactivate_employee(db_session, ctx, john.id)

        everyone = await payroll_runs.list_employees(db_session, ctx)
        active = await payroll_runs.list_employees(db_session, ctx, active_only=True)

        assert {e.id for e in everyone} == {mary.id, john.id}
        assert [e.id for e in active] == [mary.id]

    @pytest.mark.asyncio
    async def test_other_tenant_cannot_see_employee(self, db_session, admin, staff):
        other = Tenant(name="Other Land", slug="other", is_active=True)
        db_session.add(other)
        await db_session.commit()
        other_ctx = RequestContext(tenant_id=other.id, user_id=admin.id, role=UserRole.ADMIN)

        with pytest.raises(EmployeeNotFoundError):
            await payroll_runs.get_employee(db_session, other_ctx, staff[0].id)


# ── Deductions ───────────────────────────────────────────


class TestDeductionWindow:
    FIRST = date(2024, 6, 1)
    LAST = date(2024, 6, 30)

    def _deduction(self, **kwargs):
        values = dict(amount=D("1000"), is_recurring=True, is_active=True, start_date=None, end_date=None)
        values.update(kwargs)
        return EmployeeDeduction(**values)

    def test_open_ended_recurring_applies(self):
        assert payroll_runs.deduction_applies(self._deduction(), self.FIRST, self.LAST)

    def test_ended_before_period(self):
        deduction = self._deduction(end_date=date(2024, 5, 31))
        assert not payroll_runs.deduction_applies(deduction, self.FIRST, self.LAST)

    def test_starts_after_period(self):
        deduction = self._deduction(start_date=date(2024, 7, 1))
        assert not payroll_runs.deduction_applies(deduction, self.FIRST, self.LAST)

    def test_one_off_only_in_its_month(self):
        deduction = self._deduction(is_recurring=False, start_date=date(2024, 5, 20))
        assert not payroll_runs.deduction_applies(deduction, self.FIRST, self.LAST)
        assert payroll_runs.deduction_applies(deduction, date(2024, 5, 1), date(2024, 5, 31))

    def test_inactive_never_applies(self):
        assert not payroll_runs.deduction_applies(
            self._deduction(is_active=False), self.FIRST, self.LAST
        )

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, db_session, ctx, staff):
        with pytest.raises(ValidationFailed):
            await payroll_runs.add_deduction(
                db_session,
                ctx,
                staff[0].id,
                deduction_name="Loan",
                deduction_type="loan",
                amount=D("2000"),
                start_date=date(2024, 6, 1),
                end_date=date(2024, 5, 1),
            )


# ── Payroll runs ─────────────────────────────────────────


class TestProcessPayroll:
    @pytest.mark.asyncio
    async def test_records_use_calculator_and_deductions(self, db_session, ctx, staff):
        mary, john = staff
        await payroll_runs.add_deduction(
            db_session, ctx, mary.id, deduction_name="SACCO", deduction_type="sacco", amount=D("2000")
        )
        await payroll_runs.add_deduction(
            db_session,
            ctx,
            mary.id,
            deduction_name="Advance",
            deduction_type="advance",
            amount=D("1500"),
            is_recurring=False,
            start_date=date(2024, 6, 5),
        )

        run = await payroll_runs.process_payroll(db_session, ctx, 2024, 6)
        await db_session.commit()

        by_employee = {r.employee_id: r for r in run.records}
        assert set(by_employee) == {mary.id, john.id}
        assert run.skipped_employee_ids == []

        expected = calculate_payroll(
            PayrollInput(
                basic_salary=D("50000"),
                housing_allowance=D("5000"),
                other_deductions=D("3500"),
            )
        )
        record = by_employee[mary.id]
        assert record.gross_pay == expected.gross_pay
        assert record.paye == expected.paye
        assert record.other_deductions == D("3500")
        assert record.net_pay == expected.net_pay
        assert record.is_locked is False
        assert record.created_by == ctx.user_id

    @pytest.mark.asyncio
    async def test_rerun_skips_paid_employees(self, db_session, ctx, staff):
        mary, john = staff
        await payroll_runs.process_payroll(db_session, ctx, 2024, 6)
        newcomer = await payroll_runs.create_employee(
            db_session, ctx, _employee(name="Ann Njeri", salary="25000")
        )

        second = await payroll_runs.process_payroll(db_session, ctx, 2024, 6)

        assert [r.employee_id for r in second.records] == [newcomer.id]
        assert sorted(second.skipped_employee_ids) == sorted([mary.id, john.id])
        records = await payroll_runs.list_payroll_records(db_session, ctx, year=2024, month=6)
        assert len(records) == 3

    @pytest.mark.asyncio
    async def test_inactive_and_future_hires_left_out(self, db_session, ctx, staff):
        mary, john = staff
        await payroll_runs.deactivate_employee(db_session, ctx, john.id)
        await payroll_runs.create_employee(
            db_session, ctx, _employee(name="Late Starter", hire_date=date(2024, 7, 1))
        )

        run = await payroll_runs.process_payroll(db_session, ctx, 2024, 6)

        assert [r.employee_id for r in run.records] == [mary.id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("year, month", [(2024, 0), (2024, 13), (1999, 6)])
    async def test_invalid_period(self, db_session, ctx, year, month):
        with pytest.raises(InvalidPayPeriodError):
            await payroll_runs.process_payroll(db_session, ctx, year, month)

    @pytest.mark.asyncio
    async def test_run_is_logged(self, db_session, ctx, staff):
        await payroll_runs.process_payroll(db_session, ctx, 2024, 6)

        log = (
            await db_session.execute(
                select(ActivityLog).where(ActivityLog.action == ActivityAction.PAYROLL_PROCESSED)
            )
        ).scalar_one()
        assert log.details["period"] == "2024-06"
        assert log.details["processed"] == 2


# ── Approval ─────────────────────────────────────────────


class TestApproval:
    @pytest.mark.asyncio
    async def test_approve_locks_record(self, db_session, ctx, staff):
        run = await payroll_runs.process_payroll(db_session, ctx, 2024, 6)
        record = run.records[0]

        approved = await payroll_runs.approve_payroll_record(db_session, ctx, record.id)

        assert approved.is_locked is True
        assert approved.approved_by == ctx.user_id
        assert approved.approved_at is not None

    @pytest.mark.asyncio
    async def test_second_approval_rejected(self, db_session, ctx, staff):
        run = await payroll_runs.process_payroll(db_session, ctx, 2024, 6)
        record_id = run.records[0].id
        await payroll_runs.approve_payroll_record(db_session, ctx, record_id)

        with pytest.raises(PayrollLockedError):
            await payroll_runs.approve_payroll_record(db_session, ctx, record_id)

    @pytest.mark.asyncio
    async def test_approve_month_returns_newly_locked(self, db_session, ctx, staff):
        run = await payroll_runs.process_payroll(db_session, ctx, 2024, 6)
        first, second = run.records
        await payroll_runs.approve_payroll_record(db_session, ctx, first.id)

        locked = await payroll_runs.approve_payroll_month(db_session, ctx, 2024, 6)

        assert [r.id for r in locked] == [second.id]
        assert second.is_locked is True

    @pytest.mark.asyncio
    async def test_unknown_record(self, db_session, ctx):
        with pytest.raises(PayrollRecordNotFoundError):
            await payroll_runs.approve_payroll_record(db_session, ctx, 999)
