"""
Human-readable reference numbers for receipts and expenses.
"""

import secrets
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from landbook.config import settings


def _random_suffix() -> str:
    return f"{secrets.randbelow(10000):04d}"


def generate_receipt_number(now: Optional[datetime] = None) -> str:
    """Receipt number: LIP-YYYYMM-NNNN."""
    now = now or datetime.now(timezone.utc)
    return f"LIP-{now:%Y%m}-{_random_suffix()}"


def generate_expense_reference(now: Optional[datetime] = None) -> str:
    """Expense reference: EXP-YYYYMMDD-NNNN."""
    now = now or datetime.now(timezone.utc)
    return f"EXP-{now:%Y%m%d}-{_random_suffix()}"


def format_currency(amount: Decimal) -> str:
    """Whole-unit amount with thousands separators, e.g. 'KES 150,000'."""
    return f"{settings.currency} {Decimal(amount):,.0f}"


def format_employee_number(year: int, sequence: int) -> str:
    """Employee number: EMP-YYNNNN, numbered per tenant."""
    return f"EMP-{year % 100:02d}{sequence:04d}"
