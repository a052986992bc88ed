"""Payroll calculator and payroll run schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from landbook.services.payroll import (
    validate_kra_pin,
    validate_national_id,
    validate_nssf_number,
)


class PayrollRequest(BaseModel):
    """Monthly earnings for one employee."""

    basic_salary: Decimal = Field(..., ge=0)
    housing_allowance: Decimal = Field(Decimal("0"), ge=0)
    transport_allowance: Decimal = Field(Decimal("0"), ge=0)
    other_taxable_allowances: Decimal = Field(Decimal("0"), ge=0)
    non_taxable_allowances: Decimal = Field(Decimal("0"), ge=0)
    overtime_pay: Decimal = Field(Decimal("0"), ge=0)
    bonus: Decimal = Field(Decimal("0"), ge=0)
    other_deductions: Decimal = Field(Decimal("0"), ge=0)
    insurance_relief: Decimal = Field(Decimal("0"), ge=0)

    # Optional identifiers, checked for format only
    kra_pin: Optional[str] = None
    national_id: Optional[str] = None
    nssf_number: Optional[str] = None

    @field_validator("kra_pin")
    @classmethod
    def check_kra_pin(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not validate_kra_pin(v):
            raise ValueError("KRA PIN must be A or P, 9 digits and a letter")
        return v.upper() if v else v

    @field_validator("national_id")
    @classmethod
    def check_national_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not validate_national_id(v):
            raise ValueError("National ID must be 7 or 8 digits")
        return v

    @field_validator("nssf_number")
    @classmethod
    def check_nssf_number(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not validate_nssf_number(v):
            raise ValueError("NSSF number must be 9 or 10 digits")
        return v


class PayrollResponse(BaseModel):
    gross_pay: Decimal
    taxable_income: Decimal
    paye: Decimal
    nssf_employee: Decimal
    nssf_employer: Decimal
    sha_deduction: Decimal
    housing_levy_employee: Decimal
    housing_levy_employer: Decimal
    personal_relief: Decimal
    insurance_relief: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_pay: Decimal

    model_config = {"from_attributes": True}


# ── Persisted payroll ─────────────────────────────────────


class EmployeeCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    job_title: str = Field(..., min_length=1, max_length=100)
    employment_type: str = Field("Permanent", max_length=50)
    kra_pin: str
    national_id: str
    nssf_number: Optional[str] = None
    sha_number: Optional[str] = Field(None, max_length=50)
    basic_salary: Decimal = Field(..., ge=0)
    housing_allowance: Decimal = Field(Decimal("0"), ge=0)
    transport_allowance: Decimal = Field(Decimal("0"), ge=0)
    other_taxable_allowances: Decimal = Field(Decimal("0"), ge=0)
    non_taxable_allowances: Decimal = Field(Decimal("0"), ge=0)
    bank_name: Optional[str] = Field(None, max_length=100)
    bank_account: Optional[str] = Field(None, max_length=50)
    hire_date: Optional[date] = None

    @field_validator("kra_pin")
    @classmethod
    def check_kra_pin(cls, v: str) -> str:
        if not validate_kra_pin(v):
            raise ValueError("KRA PIN must be A or P, 9 digits and a letter")
        return v.upper()

    @field_validator("national_id")
    @classmethod
    def check_national_id(cls, v: str) -> str:
        if not validate_national_id(v):
            raise ValueError("National ID must be 7 or 8 digits")
        return v

    @field_validator("nssf_number")
    @classmethod
    def check_nssf_number(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not validate_nssf_number(v):
            raise ValueError("NSSF number must be 9 or 10 digits")
        return v


class EmployeeResponse(BaseModel):
    id: int
    employee_number: str
    full_name: str
    job_title: str
    employment_type: str
    kra_pin: str
    national_id: str
    nssf_number: Optional[str] = None
    sha_number: Optional[str] = None
    basic_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    other_taxable_allowances: Decimal
    non_taxable_allowances: Decimal
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None
    hire_date: Optional[date] = None
    is_active: bool

    model_config = {"from_attributes": True}


class DeductionCreate(BaseModel):
    deduction_name: str = Field(..., min_length=1, max_length=100)
    deduction_type: str = Field(..., min_length=1, max_length=50)
    amount: Decimal = Field(..., gt=0)
    is_recurring: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class DeductionResponse(BaseModel):
    id: int
    employee_id: int
    deduction_name: str
    deduction_type: str
    amount: Decimal
    is_recurring: bool
    is_active: bool
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    model_config = {"from_attributes": True}


class PayrollPeriod(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)


class PayrollRecordResponse(PayrollResponse):
    id: int
    employee_id: int
    pay_period_year: int
    pay_period_month: int
    basic_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    other_taxable_allowances: Decimal
    non_taxable_allowances: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    is_locked: bool
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None


class PayrollRunResponse(BaseModel):
    year: int
    month: int
    records: list[PayrollRecordResponse]
    skipped_employee_ids: list[int]

    model_config = {"from_attributes": True}
