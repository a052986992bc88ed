"""Utility functions."""

from landbook.utils.audit import log_action, to_jsonable
from landbook.utils.references import (
    format_currency,
    format_employee_number,
    generate_expense_reference,
    generate_receipt_number,
)

__all__ = [
    "log_action",
    "to_jsonable",
    "format_currency",
    "format_employee_number",
    "generate_expense_reference",
    "generate_receipt_number",
]
