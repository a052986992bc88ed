"""
Refund, retention and transfer arithmetic.

Rules:
- Net refund = refund amount - cancellation fee, floored at zero
- Retained by company = total paid - net refund (includes the fee)
- Transfer: money paid on the old plot is carried over to the new one,
  any excess over the new price is owed back to the buyer
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from landbook.models import ClientStatus, OutcomeType, RefundStatus
from landbook.services.states import NOT_REFUNDED_STATUSES, REFUNDED_STATUSES

ZERO = Decimal("0")
CENT = Decimal("0.01")


def quantize(amount: Decimal) -> Decimal:
    """Round to cents."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_net_refund(refund_amount: Decimal, cancellation_fee: Decimal) -> Decimal:
    """Refund minus fee, never negative.

    A fee larger than the refund produces a zero refund, not a debt.
    """
    return quantize(max(ZERO, refund_amount - cancellation_fee))


def calculate_retained(total_paid: Decimal, net_refund: Decimal) -> Decimal:
    """Money the company keeps after the refund is paid out."""
    return quantize(total_paid - net_refund)


def calculate_balance(total_price: Decimal, discount: Decimal, total_paid: Decimal) -> Decimal:
    """Outstanding amount on a sale, never negative."""
    return quantize(max(ZERO, total_price - discount - total_paid))


def calculate_percent_paid(total_price: Decimal, discount: Decimal, total_paid: Decimal) -> Decimal:
    discounted = total_price - discount
    if discounted <= 0:
        return Decimal("100.00")
    return quantize(min(Decimal("100"), total_paid * 100 / discounted))


def status_for_balance(balance: Decimal) -> ClientStatus:
    return ClientStatus.COMPLETED if balance <= 0 else ClientStatus.ONGOING


def determine_outcome(refund_status: RefundStatus, net_refund: Decimal) -> OutcomeType:
    """Classify a cancellation from its refund status and net refund."""
    if refund_status == RefundStatus.NONE:
        return OutcomeType.RETAINED
    if refund_status == RefundStatus.PENDING:
        return OutcomeType.PENDING
    if net_refund <= 0:
        # Marked refunded but nothing to pay: the company kept it all
        return OutcomeType.RETAINED
    if refund_status == RefundStatus.PARTIAL:
        return OutcomeType.PARTIAL_REFUND
    return OutcomeType.REFUNDED


def refund_expense_amount(
    previous_status: RefundStatus,
    new_status: RefundStatus,
    previous_net_refund: Decimal,
    new_net_refund: Decimal,
) -> Decimal:
    """How much new refund money a status/amount update disburses.

    - pending/none -> partial/completed: the whole net refund
    - already refunded and the net refund grew: only the increase
    - anything else: nothing
    """
    if new_status not in REFUNDED_STATUSES or new_net_refund <= 0:
        return ZERO
    if previous_status in NOT_REFUNDED_STATUSES:
        return quantize(new_net_refund)
    delta = new_net_refund - previous_net_refund
    return quantize(delta) if delta > 0 else ZERO


@dataclass(frozen=True)
class TransferSplit:
    """Outcome of moving a buyer's money onto a new plot."""

    carried_over: Decimal
    new_balance: Decimal
    refund_due: Decimal

    @property
    def new_status(self) -> ClientStatus:
        return status_for_balance(self.new_balance)


def split_transfer(amount_paid: Decimal, new_plot_price: Decimal) -> TransferSplit:
    """Split what the buyer already paid across the new plot.

    remaining = amount_paid - new_plot_price
    - remaining > 0: new plot fully paid, remaining is refunded
    - remaining <= 0: |remaining| is still owed on the new plot
    """
    remaining = amount_paid - new_plot_price
    if remaining > 0:
        return TransferSplit(
            carried_over=quantize(new_plot_price),
            new_balance=ZERO,
            refund_due=quantize(remaining),
        )
    return TransferSplit(
        carried_over=quantize(amount_paid),
        new_balance=quantize(abs(remaining)),
        refund_due=ZERO,
    )
