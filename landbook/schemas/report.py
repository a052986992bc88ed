"""Reporting schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class CancelledSalesSummaryResponse(BaseModel):
    """Totals across all cancelled sales."""

    total_cancelled: int

    # Money
    total_original_value: Decimal
    total_collected: Decimal
    total_refunded: Decimal
    total_fees: Decimal
    total_pending_refunds: Decimal
    total_retained: Decimal

    # Reconciliation check
    total_refund_expenses: Decimal
    refund_variance: Decimal

    # Outcomes
    transferred_count: int
    refunded_count: int
    retained_count: int
    pending_count: int

    model_config = {"from_attributes": True}


class LedgerEntryResponse(BaseModel):
    date: datetime
    reference: str
    description: str
    client: str
    debit: Decimal
    credit: Decimal
    category: str

    model_config = {"from_attributes": True}
