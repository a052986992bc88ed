"""Client registration and payment endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.api.errors import http_error
from landbook.auth.context import RequestContext
from landbook.auth.dependencies import require_tenant_user
from landbook.db import get_db
from landbook.models import ClientStatus
from landbook.schemas import ClientCreate, ClientResponse, PaymentCreate, PaymentResponse
from landbook.services import payments
from landbook.services.errors import LandbookError
from landbook.services.lookups import get_client

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def register_client(
    data: ClientCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
):
    """Register a sale on an available plot, with an optional first payment."""
    try:
        client = await payments.register_client(
            db,
            ctx,
            plot_id=data.plot_id,
            name=data.name,
            phone=data.phone,
            email=data.email,
            total_price=data.total_price,
            discount=data.discount,
            initial_payment=data.initial_payment,
            payment_method=data.payment_method,
            sales_agent=data.sales_agent,
            commission=data.commission,
            payment_period=data.payment_period,
            next_payment_date=data.next_payment_date,
            notes=data.notes,
        )
    except LandbookError as e:
        raise http_error(e) from e
    return ClientResponse.model_validate(client)


@router.get("", response_model=List[ClientResponse])
async def list_clients(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
    status: Optional[ClientStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
):
    clients = await payments.list_clients(db, ctx, status=status, search=search)
    return [ClientResponse.model_validate(c) for c in clients]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client_detail(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
):
    try:
        client = await get_client(db, ctx, client_id)
    except LandbookError as e:
        raise http_error(e) from e
    return ClientResponse.model_validate(client)


@router.post(
    "/{client_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    client_id: int,
    data: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
):
    """Record an installment; rejected for cancelled sales."""
    try:
        payment = await payments.record_payment(
            db,
            ctx,
            client_id,
            amount=data.amount,
            payment_method=data.payment_method,
            payment_date=data.payment_date,
            agent_name=data.agent_name,
            authorized_by=data.authorized_by,
            notes=data.notes,
        )
    except LandbookError as e:
        raise http_error(e) from e
    return PaymentResponse.model_validate(payment)


@router.get("/{client_id}/payments", response_model=List[PaymentResponse])
async def list_payments(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
):
    try:
        items = await payments.list_payments(db, ctx, client_id)
    except LandbookError as e:
        raise http_error(e) from e
    return [PaymentResponse.model_validate(p) for p in items]
