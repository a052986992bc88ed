"""
Cancellation, transfer and refund schemas.

Amounts are validated as non-negative here; the engine re-checks them so
direct service callers get the same rules.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from landbook.models.cancelled_sale import OutcomeType, RefundStatus


class CancelSaleRequest(BaseModel):
    refund_amount: Decimal = Field(Decimal("0"), ge=0)
    cancellation_fee: Decimal = Field(Decimal("0"), ge=0)
    refund_status: RefundStatus = RefundStatus.PENDING
    reason: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)


class TransferSaleRequest(BaseModel):
    new_plot_id: int
    reason: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)


class RefundUpdateRequest(BaseModel):
    refund_amount: Decimal = Field(..., ge=0)
    cancellation_fee: Decimal = Field(Decimal("0"), ge=0)
    refund_status: RefundStatus
    notes: Optional[str] = Field(None, max_length=2000)


class ReconciliationResponse(BaseModel):
    """Rows and amounts produced by a cancel/transfer/refund request."""

    workflow_id: int
    kind: str
    cancelled_sale_id: Optional[int]
    expense_ids: List[int]
    new_client_id: Optional[int]
    payment_id: Optional[int]
    net_refund: Decimal
    retained: Decimal
    refund_due: Decimal
    new_balance: Optional[Decimal]
    replayed: bool

    model_config = {"from_attributes": True}


class CancelledSaleResponse(BaseModel):
    id: int
    client_id: Optional[int]
    client_name: str
    client_phone: Optional[str]
    project_name: str
    plot_number: str
    original_sale_date: Optional[date]
    cancellation_date: datetime
    total_price: Decimal
    total_paid: Decimal
    refund_amount: Decimal
    cancellation_fee: Decimal
    net_refund: Decimal
    retained_amount: Decimal
    refund_status: RefundStatus
    outcome_type: OutcomeType
    cancellation_reason: Optional[str]
    notes: Optional[str]
    processed_date: Optional[datetime]
    transferred_to_client_id: Optional[int]

    model_config = {"from_attributes": True}
