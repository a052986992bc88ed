"""
Cancelled-sale reconciliation: cancel, transfer and refund updates.

Each operation runs inside the caller's transaction and records its
steps on a ReconciliationWorkflow row. Either every row is written or,
on any error, the session is rolled back and nothing is. Replaying a
completed request (same idempotency key) returns the stored result.

Cancel:
    1. CancelledSale snapshot
    2. Refund expense (net refund > 0 and refund completed/partial)
    3. Plot -> available, client link cleared
    4. Sale -> cancelled

Transfer:
    1. New sale on the new plot carrying over what was paid
    2. New plot -> sold
    3. Carry-over payment (method "Transfer")
    4. Old plot -> available
    5. Old sale -> cancelled
    6. CancelledSale snapshot (outcome "transferred")
    7. Pending refund expense for any overpayment
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.models import (
    ActivityAction,
    CancelledSale,
    Client,
    ClientStatus,
    ExpenseStatus,
    NotificationType,
    OutcomeType,
    Payment,
    Plot,
    PlotStatus,
    RefundStatus,
    WorkflowKind,
    WorkflowStatus,
)
from landbook.services import notifications
from landbook.services.errors import (
    DuplicateRequestError,
    InvalidAmountError,
    PlotNotAvailableError,
    PlotNotCancellableError,
    RefundDecreaseError,
    SamePlotTransferError,
)
from landbook.services.expenses import build_refund_expense, find_pending_refund_expense
from landbook.services.lookups import get_cancelled_sale, get_client, get_plot, lock_plots
from landbook.services.refunds import (
    ZERO,
    calculate_net_refund,
    calculate_percent_paid,
    calculate_retained,
    determine_outcome,
    quantize,
    refund_expense_amount,
    split_transfer,
)
from landbook.services.states import (
    OCCUPIED_PLOT_STATUSES,
    REFUNDED_STATUSES,
    ensure_plot_transition,
    ensure_refund_transition,
    ensure_sale_transition,
)
from landbook.services.workflow import (
    complete_workflow,
    derive_idempotency_key,
    find_workflow,
    last_cleared_sale,
    start_workflow,
)
from landbook.utils.audit import log_action
from landbook.utils.references import generate_receipt_number

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    """Rows and amounts produced by a reconciliation workflow."""

    workflow_id: int
    kind: str
    cancelled_sale_id: Optional[int] = None
    expense_ids: list[int] = field(default_factory=list)
    new_client_id: Optional[int] = None
    payment_id: Optional[int] = None
    net_refund: Decimal = ZERO
    retained: Decimal = ZERO
    refund_due: Decimal = ZERO
    new_balance: Optional[Decimal] = None
    replayed: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("replayed")
        for key in ("net_refund", "retained", "refund_due", "new_balance"):
            if data[key] is not None:
                data[key] = str(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict, replayed: bool = False) -> "ReconciliationResult":
        values = dict(data)
        for key in ("net_refund", "retained", "refund_due", "new_balance"):
            if values.get(key) is not None:
                values[key] = Decimal(values[key])
        return cls(**values, replayed=replayed)


async def _replay(
    db: AsyncSession,
    ctx: RequestContext,
    idempotency_key: str,
) -> Optional[ReconciliationResult]:
    existing = await find_workflow(db, ctx.tenant_id, idempotency_key)
    if existing is None:
        return None
    if existing.status != WorkflowStatus.COMPLETED:
        raise DuplicateRequestError(idempotency_key)
    logger.info(f"Replaying {existing.kind.value} workflow {existing.id} for key {idempotency_key}")
    return ReconciliationResult.from_dict(existing.result, replayed=True)


def _release_plot(plot: Plot) -> None:
    ensure_plot_transition(plot.status, PlotStatus.AVAILABLE)
    plot.status = PlotStatus.AVAILABLE
    plot.client_id = None
    plot.sold_at = None


def _validate_amount(name: str, amount: Decimal) -> None:
    if amount is None or amount < 0:
        raise InvalidAmountError(name, amount)


async def cancel_sale(
    db: AsyncSession,
    ctx: RequestContext,
    plot_id: int,
    refund_amount: Decimal,
    cancellation_fee: Decimal,
    refund_status: RefundStatus,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> ReconciliationResult:
    """
    Cancel the sale occupying a plot and return the plot to stock.

    Args:
        db: Database session (caller commits)
        ctx: Acting operator and tenant
        plot_id: Sold or reserved plot whose sale is cancelled
        refund_amount: Amount promised back to the buyer
        cancellation_fee: Fee withheld from the refund
        refund_status: Refund progress at cancellation time
        reason: Cancellation reason shown in reports
        notes: Free-text notes
        idempotency_key: Caller key; derived from the request when omitted

    Raises:
        PlotNotFoundError, PlotNotCancellableError, SaleAlreadyCancelledError,
        InvalidAmountError, DuplicateRequestError
    """
    _validate_amount("refund_amount", refund_amount)
    _validate_amount("cancellation_fee", cancellation_fee)

    plot = await get_plot(db, ctx, plot_id, for_update=True)

    key = idempotency_key
    if key is None:
        occupant = plot.client_id
        if occupant is None:
            occupant = await last_cleared_sale(db, ctx, WorkflowKind.CANCEL, plot_id)
        key = derive_idempotency_key(
            ctx,
            WorkflowKind.CANCEL,
            plot_id,
            occupant,
            quantize(refund_amount),
            quantize(cancellation_fee),
            refund_status.value,
        )
    replayed = await _replay(db, ctx, key)
    if replayed:
        return replayed

    if plot.status not in OCCUPIED_PLOT_STATUSES:
        raise PlotNotCancellableError(plot_id, plot.status.value, "plot has no active sale")
    if plot.client_id is None:
        raise PlotNotCancellableError(plot_id, plot.status.value, "no client linked to plot")

    client = await get_client(db, ctx, plot.client_id, for_update=True)
    ensure_sale_transition(client.id, client.status, ClientStatus.CANCELLED)

    net_refund = calculate_net_refund(refund_amount, cancellation_fee)
    refunded_now = refund_status in REFUNDED_STATUSES and net_refund > 0
    now = datetime.now(timezone.utc)

    workflow = await start_workflow(
        db, ctx, WorkflowKind.CANCEL, key, plot_id=plot.id, client_id=client.id
    )

    # 1. Audit snapshot
    cancelled = CancelledSale(
        tenant_id=ctx.tenant_id,
        client_id=client.id,
        client_name=client.name,
        client_phone=client.phone,
        project_name=plot.project.name if plot.project else client.project_name,
        plot_number=plot.plot_number,
        original_sale_date=client.sale_date,
        cancellation_date=now,
        total_price=client.total_price,
        total_paid=client.total_paid,
        refund_amount=quantize(refund_amount),
        cancellation_fee=quantize(cancellation_fee),
        net_refund=net_refund,
        refund_status=refund_status,
        outcome_type=determine_outcome(refund_status, net_refund),
        cancellation_reason=reason,
        notes=notes,
        cancelled_by=ctx.user_id,
        processed_date=now if refunded_now else None,
        workflow_id=workflow.id,
    )
    db.add(cancelled)
    await db.flush()
    workflow.record_step("cancelled_sale_recorded")

    # 2. Refund outflow
    expense_ids = []
    if refunded_now:
        expense = build_refund_expense(ctx, cancelled, net_refund)
        db.add(expense)
        await db.flush()
        expense_ids.append(expense.id)
        workflow.record_step("refund_expense_recorded")

    # 3. Plot back to stock
    _release_plot(plot)
    workflow.record_step("plot_released")

    # 4. Sale cancelled
    client.status = ClientStatus.CANCELLED
    workflow.record_step("sale_cancelled")

    result = ReconciliationResult(
        workflow_id=workflow.id,
        kind=WorkflowKind.CANCEL.value,
        cancelled_sale_id=cancelled.id,
        expense_ids=expense_ids,
        net_refund=net_refund,
        retained=calculate_retained(client.total_paid, net_refund),
    )
    complete_workflow(workflow, result.to_dict())

    await log_action(
        db,
        ctx,
        ActivityAction.SALE_CANCELLED,
        entity_type="cancelled_sale",
        entity_id=cancelled.id,
        details={
            "plot_id": plot.id,
            "client_id": client.id,
            "refund_status": refund_status.value,
            "net_refund": net_refund,
            "cancellation_fee": cancellation_fee,
        },
    )
    notifications.enqueue(
        db,
        ctx.tenant_id,
        NotificationType.ACTIVITY_ALERT,
        {
            "action": "Cancelled sale",
            "entityType": "client",
            "details": (
                f"{client.name} - {cancelled.project_name} {cancelled.plot_number}, "
                f"net refund {net_refund}"
            ),
        },
    )
    await db.flush()

    logger.info(
        f"Cancelled sale {client.id} on plot {plot.id}: net refund {net_refund}, "
        f"status {refund_status.value}"
    )
    return result


async def transfer_sale(
    db: AsyncSession,
    ctx: RequestContext,
    old_plot_id: int,
    new_plot_id: int,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> ReconciliationResult:
    """
    Move a buyer from one plot to an available plot.

    Everything paid on the old plot is carried over to the new sale;
    any excess over the new plot's price becomes a pending refund.

    Raises:
        PlotNotFoundError, PlotNotCancellableError, PlotNotAvailableError,
        SamePlotTransferError, SaleAlreadyCancelledError, DuplicateRequestError
    """
    if old_plot_id == new_plot_id:
        raise SamePlotTransferError(old_plot_id)

    plots = await lock_plots(db, ctx, [old_plot_id, new_plot_id])
    old_plot, new_plot = plots[old_plot_id], plots[new_plot_id]

    key = idempotency_key
    if key is None:
        occupant = old_plot.client_id
        if occupant is None:
            occupant = await last_cleared_sale(db, ctx, WorkflowKind.TRANSFER, old_plot_id)
        key = derive_idempotency_key(
            ctx, WorkflowKind.TRANSFER, old_plot_id, occupant, new_plot_id
        )
    replayed = await _replay(db, ctx, key)
    if replayed:
        return replayed

    if old_plot.client_id is None:
        raise PlotNotCancellableError(old_plot_id, old_plot.status.value, "no client linked to plot")
    if new_plot.status != PlotStatus.AVAILABLE:
        raise PlotNotAvailableError(new_plot_id, new_plot.status.value)

    old_client = await get_client(db, ctx, old_plot.client_id, for_update=True)
    ensure_sale_transition(old_client.id, old_client.status, ClientStatus.CANCELLED)
    ensure_plot_transition(old_plot.status, PlotStatus.AVAILABLE)

    amount_paid = old_client.total_paid
    split = split_transfer(amount_paid, new_plot.price)
    now = datetime.now(timezone.utc)
    old_project_name = old_plot.project.name if old_plot.project else old_client.project_name
    new_project_name = new_plot.project.name if new_plot.project else ""
    transfer_note = f"Transferred from {old_project_name} plot {old_plot.plot_number}"

    workflow = await start_workflow(
        db, ctx, WorkflowKind.TRANSFER, key, plot_id=old_plot.id, client_id=old_client.id
    )

    # 1. New sale
    new_client = Client(
        tenant_id=ctx.tenant_id,
        name=old_client.name,
        phone=old_client.phone,
        email=old_client.email,
        project_name=new_project_name,
        plot_number=new_plot.plot_number,
        unit_price=new_plot.price,
        number_of_plots=1,
        total_price=new_plot.price,
        discount=ZERO,
        total_paid=split.carried_over,
        percent_paid=calculate_percent_paid(new_plot.price, ZERO, split.carried_over),
        balance=split.new_balance,
        sales_agent=old_client.sales_agent,
        payment_period=old_client.payment_period,
        sale_date=date.today(),
        completion_date=date.today() if split.new_balance <= 0 else None,
        notes=transfer_note,
        status=split.new_status,
        created_by=ctx.user_id,
    )
    db.add(new_client)
    await db.flush()
    workflow.record_step("new_sale_created")

    # 2. New plot sold
    ensure_plot_transition(new_plot.status, PlotStatus.SOLD)
    new_plot.status = PlotStatus.SOLD
    new_plot.client_id = new_client.id
    new_plot.sold_at = now
    workflow.record_step("new_plot_sold")

    # 3. Carry-over payment
    payment_id = None
    if split.carried_over > 0:
        payment = Payment(
            tenant_id=ctx.tenant_id,
            client_id=new_client.id,
            amount=split.carried_over,
            payment_method="Transfer",
            payment_date=now,
            previous_balance=new_plot.price,
            new_balance=split.new_balance,
            receipt_number=generate_receipt_number(now),
            agent_name=old_client.sales_agent,
            notes=transfer_note,
            created_by=ctx.user_id,
        )
        db.add(payment)
        await db.flush()
        payment_id = payment.id
        workflow.record_step("carry_over_payment_recorded")

    # 4. Old plot back to stock
    _release_plot(old_plot)
    workflow.record_step("old_plot_released")

    # 5. Old sale cancelled
    old_client.status = ClientStatus.CANCELLED
    workflow.record_step("old_sale_cancelled")

    # 6. Audit snapshot
    cancelled = CancelledSale(
        tenant_id=ctx.tenant_id,
        client_id=old_client.id,
        client_name=old_client.name,
        client_phone=old_client.phone,
        project_name=old_project_name,
        plot_number=old_plot.plot_number,
        original_sale_date=old_client.sale_date,
        cancellation_date=now,
        total_price=old_client.total_price,
        total_paid=amount_paid,
        refund_amount=split.refund_due,
        cancellation_fee=ZERO,
        net_refund=split.refund_due,
        refund_status=RefundStatus.PENDING if split.refund_due > 0 else RefundStatus.NONE,
        outcome_type=OutcomeType.TRANSFERRED,
        cancellation_reason=reason or f"Transferred to {new_project_name} plot {new_plot.plot_number}",
        notes=notes,
        cancelled_by=ctx.user_id,
        transferred_to_client_id=new_client.id,
        workflow_id=workflow.id,
    )
    db.add(cancelled)
    await db.flush()
    workflow.record_step("cancelled_sale_recorded")

    # 7. Overpayment queued for refund
    expense_ids = []
    if split.refund_due > 0:
        expense = build_refund_expense(ctx, cancelled, split.refund_due, ExpenseStatus.PENDING)
        db.add(expense)
        await db.flush()
        expense_ids.append(expense.id)
        workflow.record_step("pending_refund_expense_recorded")

    result = ReconciliationResult(
        workflow_id=workflow.id,
        kind=WorkflowKind.TRANSFER.value,
        cancelled_sale_id=cancelled.id,
        expense_ids=expense_ids,
        new_client_id=new_client.id,
        payment_id=payment_id,
        net_refund=split.refund_due,
        retained=calculate_retained(amount_paid, split.refund_due),
        refund_due=split.refund_due,
        new_balance=split.new_balance,
    )
    complete_workflow(workflow, result.to_dict())

    await log_action(
        db,
        ctx,
        ActivityAction.SALE_TRANSFERRED,
        entity_type="client",
        entity_id=new_client.id,
        details={
            "old_client_id": old_client.id,
            "old_plot_id": old_plot.id,
            "new_plot_id": new_plot.id,
            "carried_over": split.carried_over,
            "refund_due": split.refund_due,
        },
    )
    notifications.enqueue(
        db,
        ctx.tenant_id,
        NotificationType.ACTIVITY_ALERT,
        {
            "action": "Transferred sale",
            "entityType": "client",
            "details": (
                f"{old_client.name}: {old_project_name} {old_plot.plot_number} -> "
                f"{new_project_name} {new_plot.plot_number}, balance {split.new_balance}"
            ),
        },
    )
    await db.flush()

    logger.info(
        f"Transferred sale {old_client.id} from plot {old_plot.id} to plot {new_plot.id} "
        f"(new sale {new_client.id}, refund due {split.refund_due})"
    )
    return result


async def update_refund(
    db: AsyncSession,
    ctx: RequestContext,
    cancelled_sale_id: int,
    refund_amount: Decimal,
    cancellation_fee: Decimal,
    refund_status: RefundStatus,
    notes: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> ReconciliationResult:
    """
    Revise the refund on a cancelled sale after the fact.

    - pending/none -> partial/completed with a net refund: one expense for
      the whole net refund (settling a queued transfer refund if present)
    - already refunded and the net refund grows: one expense for the delta
    - backward status moves and shrinking a disbursed refund are rejected

    Raises:
        CancelledSaleNotFoundError, IllegalTransitionError, RefundDecreaseError,
        InvalidAmountError, DuplicateRequestError
    """
    _validate_amount("refund_amount", refund_amount)
    _validate_amount("cancellation_fee", cancellation_fee)

    key = idempotency_key or derive_idempotency_key(
        ctx,
        WorkflowKind.REFUND_UPDATE,
        cancelled_sale_id,
        quantize(refund_amount),
        quantize(cancellation_fee),
        refund_status.value,
        notes or "",
    )
    replayed = await _replay(db, ctx, key)
    if replayed:
        return replayed

    cancelled = await get_cancelled_sale(db, ctx, cancelled_sale_id, for_update=True)
    previous_status = cancelled.refund_status
    previous_net = cancelled.net_refund
    net_refund = calculate_net_refund(refund_amount, cancellation_fee)

    ensure_refund_transition(previous_status, refund_status)
    if previous_status in REFUNDED_STATUSES and net_refund < previous_net:
        raise RefundDecreaseError(previous_net, net_refund)

    disbursed = refund_expense_amount(previous_status, refund_status, previous_net, net_refund)
    now = datetime.now(timezone.utc)

    workflow = await start_workflow(db, ctx, WorkflowKind.REFUND_UPDATE, key)

    cancelled.refund_amount = quantize(refund_amount)
    cancelled.cancellation_fee = quantize(cancellation_fee)
    cancelled.net_refund = net_refund
    cancelled.refund_status = refund_status
    if notes is not None:
        cancelled.notes = notes
    if cancelled.outcome_type != OutcomeType.TRANSFERRED:
        cancelled.outcome_type = determine_outcome(refund_status, net_refund)
    if disbursed > 0 and cancelled.processed_date is None:
        cancelled.processed_date = now
    workflow.record_step("cancelled_sale_updated")

    expense_ids = []
    pending = await find_pending_refund_expense(db, cancelled)
    if disbursed > 0:
        if pending is not None:
            pending.amount = disbursed
            pending.status = ExpenseStatus.PAID
            pending.expense_date = now
            expense_ids.append(pending.id)
            workflow.record_step("pending_refund_expense_settled")
        else:
            expense = build_refund_expense(ctx, cancelled, disbursed)
            db.add(expense)
            await db.flush()
            expense_ids.append(expense.id)
            workflow.record_step("refund_expense_recorded")
    elif pending is not None and refund_status == RefundStatus.NONE:
        # Queued refund that will never be paid out
        await db.delete(pending)
        workflow.record_step("pending_refund_expense_voided")

    result = ReconciliationResult(
        workflow_id=workflow.id,
        kind=WorkflowKind.REFUND_UPDATE.value,
        cancelled_sale_id=cancelled.id,
        expense_ids=expense_ids,
        net_refund=net_refund,
        retained=calculate_retained(cancelled.total_paid, net_refund),
        refund_due=disbursed,
    )
    complete_workflow(workflow, result.to_dict())

    await log_action(
        db,
        ctx,
        ActivityAction.REFUND_UPDATED,
        entity_type="cancelled_sale",
        entity_id=cancelled.id,
        details={
            "from_status": previous_status.value,
            "to_status": refund_status.value,
            "previous_net_refund": previous_net,
            "net_refund": net_refund,
            "disbursed": disbursed,
        },
    )
    if disbursed > 0:
        notifications.enqueue(
            db,
            ctx.tenant_id,
            NotificationType.ACTIVITY_ALERT,
            {
                "action": "Processed refund",
                "entityType": "cancelled_sale",
                "details": f"{cancelled.client_name} ({cancelled.plot_number}): {disbursed}",
            },
        )
    await db.flush()

    logger.info(
        f"Refund on cancelled sale {cancelled.id}: {previous_status.value} -> "
        f"{refund_status.value}, disbursed {disbursed}"
    )
    return result
