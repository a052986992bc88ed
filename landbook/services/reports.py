"""
Cancelled-sales reporting: summary, outcome counts and audit ledger.

Ledger entries derived per cancelled sale:
    CAN-  Revenue Loss   total price not collected         (debit)
    REF-  Cash Outflow   net refund                        (debit)
    FEE-  Fee Income     cancellation fee                  (credit)
    RET-  Retained       paid - net refund - fee, if > 0   (credit)
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.models import (
    REFUND_CATEGORY,
    CancelledSale,
    Expense,
    ExpenseStatus,
    OutcomeType,
    RefundStatus,
)
from landbook.services.refunds import ZERO
from landbook.services.states import REFUNDED_STATUSES

REVENUE_LOSS = "Revenue Loss"
CASH_OUTFLOW = "Cash Outflow"
FEE_INCOME = "Fee Income"
RETAINED = "Retained"


@dataclass
class CancelledSalesSummary:
    total_cancelled: int
    total_original_value: Decimal
    total_collected: Decimal
    total_refunded: Decimal
    total_fees: Decimal
    total_pending_refunds: Decimal
    total_retained: Decimal
    total_refund_expenses: Decimal
    refund_variance: Decimal
    transferred_count: int
    refunded_count: int
    retained_count: int
    pending_count: int


@dataclass
class LedgerEntry:
    date: datetime
    reference: str
    description: str
    client: str
    debit: Decimal
    credit: Decimal
    category: str


async def list_cancelled_sales(
    db: AsyncSession,
    ctx: RequestContext,
    refund_status: Optional[RefundStatus] = None,
    outcome_type: Optional[OutcomeType] = None,
) -> Sequence[CancelledSale]:
    query = select(CancelledSale).where(CancelledSale.tenant_id == ctx.tenant_id)

    if refund_status:
        query = query.where(CancelledSale.refund_status == refund_status)

    if outcome_type:
        query = query.where(CancelledSale.outcome_type == outcome_type)

    result = await db.execute(
        query.order_by(CancelledSale.cancellation_date.desc(), CancelledSale.id.desc())
    )
    return result.scalars().all()


async def paid_refund_expenses_total(db: AsyncSession, ctx: RequestContext) -> Decimal:
    total = await db.scalar(
        select(func.coalesce(func.sum(Expense.amount), ZERO)).where(
            Expense.tenant_id == ctx.tenant_id,
            Expense.category == REFUND_CATEGORY,
            Expense.status == ExpenseStatus.PAID,
        )
    )
    return Decimal(total or 0)


def summarize(sales: Sequence[CancelledSale], refund_expenses: Decimal) -> CancelledSalesSummary:
    """
    Totals across cancelled sales.

    refund_variance compares money actually paid out as Refund expenses
    with the net refunds of sales in a refunded status; anything other
    than zero needs an operator to look at it.
    """
    collected = sum((s.total_paid for s in sales), ZERO)
    refunded = sum((s.net_refund for s in sales), ZERO)
    disbursed = sum(
        (s.net_refund for s in sales if s.refund_status in REFUNDED_STATUSES), ZERO
    )
    pending = sum(
        (s.net_refund for s in sales if s.refund_status == RefundStatus.PENDING), ZERO
    )

    return CancelledSalesSummary(
        total_cancelled=len(sales),
        total_original_value=sum((s.total_price for s in sales), ZERO),
        total_collected=collected,
        total_refunded=refunded,
        total_fees=sum((s.cancellation_fee for s in sales), ZERO),
        total_pending_refunds=pending,
        total_retained=collected - refunded,
        total_refund_expenses=refund_expenses,
        refund_variance=refund_expenses - disbursed,
        transferred_count=sum(1 for s in sales if s.outcome_type == OutcomeType.TRANSFERRED),
        refunded_count=sum(
            1
            for s in sales
            if s.outcome_type in (OutcomeType.REFUNDED, OutcomeType.PARTIAL_REFUND)
        ),
        retained_count=sum(1 for s in sales if s.outcome_type == OutcomeType.RETAINED),
        pending_count=sum(1 for s in sales if s.outcome_type == OutcomeType.PENDING),
    )


def build_audit_ledger(sales: Sequence[CancelledSale]) -> list[LedgerEntry]:
    """Derived ledger entries, newest first."""
    entries: list[LedgerEntry] = []

    for sale in sales:
        label = f"{sale.project_name} {sale.plot_number}"
        suffix = f"{sale.id:08d}"

        uncollected = sale.total_price - sale.total_paid
        if uncollected > 0:
            entries.append(
                LedgerEntry(
                    date=sale.cancellation_date,
                    reference=f"CAN-{suffix}",
                    description=f"Revenue loss - {label}",
                    client=sale.client_name,
                    debit=uncollected,
                    credit=ZERO,
                    category=REVENUE_LOSS,
                )
            )

        if sale.net_refund > 0:
            entries.append(
                LedgerEntry(
                    date=sale.processed_date or sale.cancellation_date,
                    reference=f"REF-{suffix}",
                    description=f"Refund paid - {label}",
                    client=sale.client_name,
                    debit=sale.net_refund,
                    credit=ZERO,
                    category=CASH_OUTFLOW,
                )
            )

        if sale.cancellation_fee > 0:
            entries.append(
                LedgerEntry(
                    date=sale.cancellation_date,
                    reference=f"FEE-{suffix}",
                    description=f"Cancellation fee - {label}",
                    client=sale.client_name,
                    debit=ZERO,
                    credit=sale.cancellation_fee,
                    category=FEE_INCOME,
                )
            )

        retained_beyond_fees = sale.total_paid - sale.net_refund - sale.cancellation_fee
        if retained_beyond_fees > 0:
            entries.append(
                LedgerEntry(
                    date=sale.cancellation_date,
                    reference=f"RET-{suffix}",
                    description=f"Forfeited amount - {label}",
                    client=sale.client_name,
                    debit=ZERO,
                    credit=retained_beyond_fees,
                    category=RETAINED,
                )
            )

    entries.sort(key=lambda e: (_naive(e.date), e.reference), reverse=True)
    return entries


def _naive(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; compare on wall-clock values
    return value.replace(tzinfo=None) if value.tzinfo else value


async def cancelled_sales_summary(db: AsyncSession, ctx: RequestContext) -> CancelledSalesSummary:
    sales = await list_cancelled_sales(db, ctx)
    return summarize(sales, await paid_refund_expenses_total(db, ctx))


async def cancelled_sales_audit(db: AsyncSession, ctx: RequestContext) -> list[LedgerEntry]:
    return build_audit_ledger(await list_cancelled_sales(db, ctx))
