"""Expense schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from landbook.models.expense import ExpenseStatus


class ExpenseCreate(BaseModel):
    category: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., gt=0)
    payment_method: str = Field("Cash", max_length=50)
    recipient: Optional[str] = Field(None, max_length=200)
    expense_date: Optional[datetime] = None
    client_id: Optional[int] = None
    agent_id: Optional[str] = Field(None, max_length=100)
    is_commission_payout: bool = False
    notes: Optional[str] = Field(None, max_length=2000)


class ExpenseResponse(BaseModel):
    id: int
    expense_date: datetime
    category: str
    description: str
    amount: Decimal
    payment_method: str
    recipient: Optional[str]
    reference_number: Optional[str]
    client_id: Optional[int]
    cancelled_sale_id: Optional[int]
    is_commission_payout: bool
    status: ExpenseStatus
    notes: Optional[str]

    model_config = {"from_attributes": True}
