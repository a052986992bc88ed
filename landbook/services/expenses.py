"""
Expense recording, including refund expenses for cancelled sales.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.models import (
    REFUND_CATEGORY,
    ActivityAction,
    CancelledSale,
    Expense,
    ExpenseStatus,
)
from landbook.services.errors import InvalidAmountError
from landbook.utils.audit import log_action
from landbook.utils.references import format_currency, generate_expense_reference

logger = logging.getLogger(__name__)


async def create_expense(
    db: AsyncSession,
    ctx: RequestContext,
    category: str,
    description: str,
    amount: Decimal,
    payment_method: str = "Cash",
    recipient: Optional[str] = None,
    expense_date: Optional[datetime] = None,
    client_id: Optional[int] = None,
    agent_id: Optional[str] = None,
    is_commission_payout: bool = False,
    notes: Optional[str] = None,
) -> Expense:
    """Record a general expense entered by an operator."""
    if amount <= 0:
        raise InvalidAmountError("amount", amount)

    expense = Expense(
        tenant_id=ctx.tenant_id,
        expense_date=expense_date or datetime.now(timezone.utc),
        category=category,
        description=description,
        amount=amount,
        payment_method=payment_method,
        recipient=recipient,
        reference_number=generate_expense_reference(),
        agent_id=agent_id,
        client_id=client_id,
        is_commission_payout=is_commission_payout,
        status=ExpenseStatus.PAID,
        notes=notes,
        created_by=ctx.user_id,
    )
    db.add(expense)
    await db.flush()

    await log_action(
        db,
        ctx,
        ActivityAction.EXPENSE_CREATED,
        entity_type="expense",
        entity_id=expense.id,
        details={"category": category, "amount": amount},
    )
    return expense


def build_refund_expense(
    ctx: RequestContext,
    cancelled: CancelledSale,
    amount: Decimal,
    status: ExpenseStatus = ExpenseStatus.PAID,
) -> Expense:
    """Refund outflow linked to a cancelled sale. Caller adds and flushes."""
    return Expense(
        tenant_id=ctx.tenant_id,
        expense_date=datetime.now(timezone.utc),
        category=REFUND_CATEGORY,
        description=(
            f"Refund for cancelled sale - {cancelled.client_name} ({cancelled.plot_number})"
        ),
        amount=amount,
        payment_method="Cash",
        recipient=cancelled.client_name,
        reference_number=generate_expense_reference(),
        client_id=cancelled.client_id,
        cancelled_sale_id=cancelled.id,
        is_commission_payout=False,
        status=status,
        notes=(
            f"Cancelled sale refund. Project: {cancelled.project_name}, "
            f"Original sale: {format_currency(cancelled.total_price)}, "
            f"Was paid: {format_currency(cancelled.total_paid)}, "
            f"Net refund: {format_currency(amount)}"
        ),
        created_by=ctx.user_id,
    )


async def find_pending_refund_expense(
    db: AsyncSession,
    cancelled: CancelledSale,
) -> Optional[Expense]:
    result = await db.execute(
        select(Expense)
        .where(
            Expense.cancelled_sale_id == cancelled.id,
            Expense.status == ExpenseStatus.PENDING,
        )
        .order_by(Expense.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_expenses(
    db: AsyncSession,
    ctx: RequestContext,
    category: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Sequence[Expense]:
    query = select(Expense).where(Expense.tenant_id == ctx.tenant_id)

    if category:
        query = query.where(Expense.category == category)

    if start_date:
        query = query.where(Expense.expense_date >= start_date)

    if end_date:
        query = query.where(Expense.expense_date <= end_date)

    result = await db.execute(query.order_by(Expense.expense_date.desc(), Expense.id.desc()))
    return result.scalars().all()
