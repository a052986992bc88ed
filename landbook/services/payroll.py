"""
Kenyan payroll calculator (monthly).

Statutory deductions:
- PAYE on graduated bands, less personal and insurance relief
- NSSF Tier I/II at 6% of pensionable pay up to 7,000 / 36,000
- SHA at 2.75% of gross
- Affordable Housing Levy at 1.5% of gross (employer matches)

NSSF and the employee housing levy are deducted before PAYE.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from landbook.services.refunds import ZERO, quantize

# (upper bound of band, rate); None = no upper bound
PAYE_BANDS: tuple[tuple[Optional[Decimal], Decimal], ...] = (
    (Decimal("24000"), Decimal("0.10")),
    (Decimal("32333"), Decimal("0.25")),
    (Decimal("500000"), Decimal("0.30")),
    (Decimal("800000"), Decimal("0.325")),
    (None, Decimal("0.35")),
)

PERSONAL_RELIEF = Decimal("2400")
MAX_INSURANCE_RELIEF = Decimal("5000")

NSSF_TIER_I_LIMIT = Decimal("7000")
NSSF_TIER_II_LIMIT = Decimal("36000")
NSSF_RATE = Decimal("0.06")

SHA_RATE = Decimal("0.0275")
HOUSING_LEVY_RATE = Decimal("0.015")

KRA_PIN_PATTERN = re.compile(r"^[AP]\d{9}[A-Z]$")
NATIONAL_ID_PATTERN = re.compile(r"^\d{7,8}$")
NSSF_NUMBER_PATTERN = re.compile(r"^\d{9,10}$")


@dataclass
class PayrollInput:
    basic_salary: Decimal
    housing_allowance: Decimal = ZERO
    transport_allowance: Decimal = ZERO
    other_taxable_allowances: Decimal = ZERO
    non_taxable_allowances: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    bonus: Decimal = ZERO
    other_deductions: Decimal = ZERO
    insurance_relief: Decimal = ZERO


@dataclass
class PayrollResult:
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


def calculate_paye(taxable_income: Decimal) -> Decimal:
    """Tax before reliefs."""
    if taxable_income <= 0:
        return ZERO

    tax = ZERO
    lower = ZERO
    for upper, rate in PAYE_BANDS:
        if taxable_income <= lower:
            break
        top = taxable_income if upper is None else min(taxable_income, upper)
        tax += (top - lower) * rate
        if upper is None:
            break
        lower = upper
    return quantize(tax)


def calculate_nssf(pensionable_pay: Decimal) -> Decimal:
    """Employee contribution; the employer pays the same amount."""
    capped = min(max(pensionable_pay, ZERO), NSSF_TIER_II_LIMIT)
    tier_one = min(capped, NSSF_TIER_I_LIMIT) * NSSF_RATE
    tier_two = max(ZERO, capped - NSSF_TIER_I_LIMIT) * NSSF_RATE
    return quantize(tier_one + tier_two)


def calculate_sha(gross_pay: Decimal) -> Decimal:
    return quantize(gross_pay * SHA_RATE)


def calculate_housing_levy(gross_pay: Decimal) -> Decimal:
    return quantize(gross_pay * HOUSING_LEVY_RATE)


def calculate_payroll(data: PayrollInput) -> PayrollResult:
    gross = (
        data.basic_salary
        + data.housing_allowance
        + data.transport_allowance
        + data.other_taxable_allowances
        + data.non_taxable_allowances
        + data.overtime_pay
        + data.bonus
    )
    taxable_gross = gross - data.non_taxable_allowances

    nssf = calculate_nssf(taxable_gross)
    housing_levy = calculate_housing_levy(gross)
    taxable_income = taxable_gross - nssf - housing_levy

    insurance_relief = min(max(data.insurance_relief, ZERO), MAX_INSURANCE_RELIEF)
    paye = max(ZERO, calculate_paye(taxable_income) - PERSONAL_RELIEF - insurance_relief)
    sha = calculate_sha(gross)

    total_deductions = paye + nssf + sha + housing_levy + data.other_deductions

    return PayrollResult(
        gross_pay=quantize(gross),
        taxable_income=quantize(taxable_income),
        paye=quantize(paye),
        nssf_employee=nssf,
        nssf_employer=nssf,
        sha_deduction=sha,
        housing_levy_employee=housing_levy,
        housing_levy_employer=housing_levy,
        personal_relief=PERSONAL_RELIEF,
        insurance_relief=quantize(insurance_relief),
        other_deductions=quantize(data.other_deductions),
        total_deductions=quantize(total_deductions),
        net_pay=quantize(max(ZERO, gross - total_deductions)),
    )


def validate_kra_pin(pin: str) -> bool:
    return bool(KRA_PIN_PATTERN.match(pin.upper()))


def validate_national_id(value: str) -> bool:
    return bool(NATIONAL_ID_PATTERN.match(value))


def validate_nssf_number(value: str) -> bool:
    return bool(NSSF_NUMBER_PATTERN.match(value))
