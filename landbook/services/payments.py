"""
Client registration and installment payments.

Balance rule kept on every write:
    balance = max(0, total_price - discount - total_paid)
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.models import (
    ActivityAction,
    Client,
    ClientStatus,
    NotificationType,
    Payment,
    PlotStatus,
    Tenant,
)
from landbook.services import notifications
from landbook.services.errors import InvalidAmountError, PlotNotAvailableError
from landbook.services.lookups import get_client, get_plot
from landbook.services.refunds import (
    ZERO,
    calculate_balance,
    calculate_percent_paid,
    quantize,
    status_for_balance,
)
from landbook.services.states import ensure_plot_transition, ensure_sale_transition
from landbook.utils.audit import log_action
from landbook.utils.references import generate_receipt_number

logger = logging.getLogger(__name__)


async def record_payment(
    db: AsyncSession,
    ctx: RequestContext,
    client_id: int,
    amount: Decimal,
    payment_method: str,
    payment_date: Optional[datetime] = None,
    agent_name: Optional[str] = None,
    authorized_by: Optional[str] = None,
    notes: Optional[str] = None,
) -> Payment:
    """
    Append a payment to a sale and recompute its balance.

    The sale moves to completed once nothing is outstanding.

    Raises:
        ClientNotFoundError, InvalidAmountError, SaleAlreadyCancelledError
    """
    if amount is None or amount <= 0:
        raise InvalidAmountError("amount", amount)

    client = await get_client(db, ctx, client_id, for_update=True)
    previous_balance = client.balance
    total_paid = quantize(client.total_paid + amount)
    new_balance = calculate_balance(client.total_price, client.discount, total_paid)
    new_status = status_for_balance(new_balance)
    ensure_sale_transition(client.id, client.status, new_status)

    now = payment_date or datetime.now(timezone.utc)
    payment = Payment(
        tenant_id=ctx.tenant_id,
        client_id=client.id,
        amount=quantize(amount),
        payment_method=payment_method,
        payment_date=now,
        previous_balance=previous_balance,
        new_balance=new_balance,
        receipt_number=generate_receipt_number(now),
        agent_name=agent_name or client.sales_agent,
        authorized_by=authorized_by,
        notes=notes,
        created_by=ctx.user_id,
    )
    db.add(payment)

    client.total_paid = total_paid
    client.balance = new_balance
    client.percent_paid = calculate_percent_paid(client.total_price, client.discount, total_paid)
    if new_status == ClientStatus.COMPLETED and client.status != ClientStatus.COMPLETED:
        client.completion_date = now.date()
    client.status = new_status
    await db.flush()

    await log_action(
        db,
        ctx,
        ActivityAction.PAYMENT_ADDED,
        entity_type="client",
        entity_id=client.id,
        details={
            "payment_id": payment.id,
            "amount": payment.amount,
            "method": payment_method,
            "receipt_number": payment.receipt_number,
            "new_balance": new_balance,
        },
    )
    if client.email:
        notifications.enqueue(
            db,
            ctx.tenant_id,
            NotificationType.PAYMENT_ADDED,
            {
                "clientName": client.name,
                "amount": payment.amount,
                "paymentMethod": payment_method,
                "receiptNumber": payment.receipt_number,
                "projectName": client.project_name,
                "plotNumber": client.plot_number,
                "totalPaid": total_paid,
                "balance": new_balance,
            },
            recipient=client.email,
        )

    logger.info(
        f"Payment {payment.receipt_number} of {payment.amount} on client {client.id}: "
        f"balance {previous_balance} -> {new_balance}"
    )
    return payment


async def list_payments(db: AsyncSession, ctx: RequestContext, client_id: int) -> Sequence[Payment]:
    client = await get_client(db, ctx, client_id)
    result = await db.execute(
        select(Payment)
        .where(Payment.client_id == client.id, Payment.tenant_id == ctx.tenant_id)
        .order_by(Payment.payment_date, Payment.id)
    )
    return result.scalars().all()


async def register_client(
    db: AsyncSession,
    ctx: RequestContext,
    plot_id: int,
    name: str,
    phone: str = "",
    email: Optional[str] = None,
    total_price: Optional[Decimal] = None,
    discount: Decimal = ZERO,
    initial_payment: Decimal = ZERO,
    payment_method: str = "Cash",
    sales_agent: str = "",
    commission: Decimal = ZERO,
    payment_period: str = "",
    next_payment_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> Client:
    """
    Register a sale on an available plot.

    The plot price is used when no total price is given. An initial
    payment, if any, goes through the normal payment path.

    Raises:
        PlotNotFoundError, PlotNotAvailableError, InvalidAmountError
    """
    plot = await get_plot(db, ctx, plot_id, for_update=True)
    if plot.status != PlotStatus.AVAILABLE:
        raise PlotNotAvailableError(plot_id, plot.status.value)

    price = quantize(total_price if total_price is not None else plot.price)
    if price < 0:
        raise InvalidAmountError("total_price", price)
    if discount < 0 or discount > price:
        raise InvalidAmountError("discount", discount)
    if initial_payment < 0:
        raise InvalidAmountError("initial_payment", initial_payment)

    balance = calculate_balance(price, discount, ZERO)
    client = Client(
        tenant_id=ctx.tenant_id,
        name=name,
        phone=phone,
        email=email,
        project_name=plot.project.name,
        plot_number=plot.plot_number,
        unit_price=plot.price,
        number_of_plots=1,
        total_price=price,
        discount=quantize(discount),
        total_paid=ZERO,
        percent_paid=calculate_percent_paid(price, discount, ZERO),
        balance=balance,
        sales_agent=sales_agent,
        commission=quantize(commission),
        commission_received=ZERO,
        commission_balance=quantize(commission),
        payment_period=payment_period,
        next_payment_date=next_payment_date,
        sale_date=date.today(),
        notes=notes,
        status=status_for_balance(balance),
        created_by=ctx.user_id,
    )
    db.add(client)
    await db.flush()

    ensure_plot_transition(plot.status, PlotStatus.SOLD)
    plot.status = PlotStatus.SOLD
    plot.client_id = client.id
    plot.sold_at = datetime.now(timezone.utc)

    await log_action(
        db,
        ctx,
        ActivityAction.CLIENT_CREATED,
        entity_type="client",
        entity_id=client.id,
        details={"plot_id": plot.id, "total_price": price, "discount": discount},
    )
    await db.flush()

    if initial_payment > 0:
        await record_payment(
            db,
            ctx,
            client.id,
            initial_payment,
            payment_method,
            agent_name=sales_agent,
            notes="Initial payment at registration",
        )

    logger.info(f"Registered client {client.id} on plot {plot.id} ({plot.project.name})")
    return client


async def list_clients(
    db: AsyncSession,
    ctx: RequestContext,
    status: Optional[ClientStatus] = None,
    search: Optional[str] = None,
) -> Sequence[Client]:
    query = select(Client).where(Client.tenant_id == ctx.tenant_id)

    if status:
        query = query.where(Client.status == status)

    if search:
        query = query.where(Client.name.ilike(f"%{search}%"))

    result = await db.execute(query.order_by(Client.created_at.desc(), Client.id.desc()))
    return result.scalars().all()


async def queue_payment_reminders(db: AsyncSession, today: Optional[date] = None) -> int:
    """
    Queue a payment reminder for every overdue sale with an email address.

    Overdue means ongoing, a balance above zero and a next payment date
    before today. Covers every active tenant.

    Returns:
        Number of reminders queued
    """
    today = today or date.today()
    result = await db.execute(
        select(Client, Tenant.name)
        .join(Tenant, Tenant.id == Client.tenant_id)
        .where(
            Tenant.is_active.is_(True),
            Client.status == ClientStatus.ONGOING,
            Client.balance > 0,
            Client.next_payment_date < today,
            Client.email.is_not(None),
            Client.email != "",
        )
        .order_by(Client.tenant_id, Client.id)
    )

    queued = 0
    for client, company_name in result.all():
        notifications.enqueue(
            db,
            client.tenant_id,
            NotificationType.PAYMENT_REMINDER,
            {
                "clientId": client.id,
                "clientName": client.name,
                "companyName": company_name,
                "projectName": client.project_name,
                "plotNumber": client.plot_number,
                "balance": client.balance,
                "dueDate": client.next_payment_date.isoformat(),
            },
            recipient=client.email,
        )
        queued += 1

    await db.flush()
    if queued:
        logger.info(f"Queued {queued} payment reminders for {today.isoformat()}")
    return queued
