"""
Tests for the payroll calculator.
"""

from decimal import Decimal

import pytest

from landbook.services.payroll import (
    PayrollInput,
    calculate_housing_levy,
    calculate_nssf,
    calculate_paye,
    calculate_payroll,
    calculate_sha,
    validate_kra_pin,
    validate_national_id,
    validate_nssf_number,
)

D = Decimal


# ── Statutory deductions ─────────────────────────────────


class TestDeductions:
    @pytest.mark.parametrize(
        "taxable, expected",
        [
            ("0", "0"),
            ("-100", "0"),
            ("24000", "2400.00"),
            ("32333", "4483.25"),
            ("47090", "8910.35"),
        ],
    )
    def test_paye_bands(self, taxable, expected):
        assert calculate_paye(D(taxable)) == D(expected)

    def test_paye_top_band(self):
        # 2400 + 2083.25 + 140300.10 + 97500 + 0.35 * 200000
        assert calculate_paye(D("1000000")) == D("312283.35")

    @pytest.mark.parametrize(
        "pay, expected",
        [
            ("5000", "300.00"),
            ("7000", "420.00"),
            ("20000", "1200.00"),
            ("36000", "2160.00"),
            ("150000", "2160.00"),
        ],
    )
    def test_nssf_tiers(self, pay, expected):
        assert calculate_nssf(D(pay)) == D(expected)

    def test_sha_and_housing_levy(self):
        assert calculate_sha(D("50000")) == D("1375.00")
        assert calculate_housing_levy(D("50000")) == D("750.00")


# ── Full payslip ─────────────────────────────────────────


class TestCalculatePayroll:
    def test_mid_salary(self):
        result = calculate_payroll(PayrollInput(basic_salary=D("50000")))

        assert result.gross_pay == D("50000")
        assert result.nssf_employee == D("2160")
        assert result.nssf_employer == result.nssf_employee
        assert result.housing_levy_employee == D("750")
        assert result.taxable_income == D("47090")
        assert result.paye == D("6510.35")
        assert result.sha_deduction == D("1375")
        assert result.total_deductions == D("10795.35")
        assert result.net_pay == D("39204.65")

    def test_low_salary_pays_no_paye(self):
        result = calculate_payroll(PayrollInput(basic_salary=D("20000")))

        assert result.nssf_employee == D("1200")
        assert result.housing_levy_employee == D("300")
        assert result.paye == D("0")
        assert result.sha_deduction == D("550")
        assert result.net_pay == D("17950")

    def test_insurance_relief_capped(self):
        base = calculate_payroll(PayrollInput(basic_salary=D("200000")))
        relieved = calculate_payroll(
            PayrollInput(basic_salary=D("200000"), insurance_relief=D("9000"))
        )

        assert relieved.insurance_relief == D("5000")
        assert base.paye - relieved.paye == D("5000")

    def test_non_taxable_allowance_not_taxed(self):
        base = calculate_payroll(PayrollInput(basic_salary=D("50000")))
        with_allowance = calculate_payroll(
            PayrollInput(basic_salary=D("50000"), non_taxable_allowances=D("10000"))
        )

        assert with_allowance.gross_pay == D("60000")
        assert with_allowance.nssf_employee == base.nssf_employee
        assert with_allowance.paye < base.paye

    def test_other_deductions_reduce_net(self):
        result = calculate_payroll(
            PayrollInput(basic_salary=D("50000"), other_deductions=D("2000"))
        )
        assert result.net_pay == D("37204.65")


# ── Identifier validation ────────────────────────────────


class TestValidators:
    @pytest.mark.parametrize("pin", ["A123456789B", "p987654321z"])
    def test_valid_kra_pin(self, pin):
        assert validate_kra_pin(pin)

    @pytest.mark.parametrize("pin", ["", "A12345678B", "B123456789C", "A1234567890"])
    def test_invalid_kra_pin(self, pin):
        assert not validate_kra_pin(pin)

    def test_national_id(self):
        assert validate_national_id("1234567")
        assert validate_national_id("12345678")
        assert not validate_national_id("123456")
        assert not validate_national_id("12A45678")

    def test_nssf_number(self):
        assert validate_nssf_number("123456789")
        assert validate_nssf_number("1234567890")
        assert not validate_nssf_number("12345678")
