"""Client (sale) and payment schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from landbook.models.client import ClientStatus


class ClientCreate(BaseModel):
    """Register a sale on an available plot."""

    plot_id: int
    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field("", max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    total_price: Optional[Decimal] = Field(None, ge=0)  # Defaults to the plot price
    discount: Decimal = Field(Decimal("0"), ge=0)
    initial_payment: Decimal = Field(Decimal("0"), ge=0)
    payment_method: str = Field("Cash", max_length=50)
    sales_agent: str = Field("", max_length=100)
    commission: Decimal = Field(Decimal("0"), ge=0)
    payment_period: str = Field("", max_length=50)
    next_payment_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=2000)


class ClientResponse(BaseModel):
    id: int
    name: str
    phone: str
    email: Optional[str]
    project_name: str
    plot_number: str
    unit_price: Decimal
    number_of_plots: int
    total_price: Decimal
    discount: Decimal
    total_paid: Decimal
    percent_paid: Decimal
    balance: Decimal
    sales_agent: str
    commission: Decimal
    commission_received: Decimal
    commission_balance: Decimal
    payment_period: str
    completion_date: Optional[date]
    next_payment_date: Optional[date]
    sale_date: Optional[date]
    notes: Optional[str]
    status: ClientStatus

    model_config = {"from_attributes": True}


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: str = Field(..., min_length=1, max_length=50)
    payment_date: Optional[datetime] = None
    agent_name: Optional[str] = Field(None, max_length=100)
    authorized_by: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=2000)


class PaymentResponse(BaseModel):
    id: int
    client_id: int
    amount: Decimal
    payment_method: str
    payment_date: datetime
    previous_balance: Decimal
    new_balance: Decimal
    receipt_number: str
    agent_name: str
    authorized_by: Optional[str]
    notes: Optional[str]

    model_config = {"from_attributes": True}
