"""
Transition tables for sale, plot and refund statuses.

Every status change made by the services goes through one of the
``ensure_*`` helpers; anything not listed here is rejected.
"""

from landbook.models import ClientStatus, PlotStatus, RefundStatus
from landbook.services.errors import IllegalTransitionError, SaleAlreadyCancelledError

SALE_TRANSITIONS: dict[ClientStatus, frozenset[ClientStatus]] = {
    ClientStatus.ONGOING: frozenset(
        {ClientStatus.ONGOING, ClientStatus.COMPLETED, ClientStatus.CANCELLED}
    ),
    # A price edit can reopen a completed sale
    ClientStatus.COMPLETED: frozenset(
        {ClientStatus.COMPLETED, ClientStatus.ONGOING, ClientStatus.CANCELLED}
    ),
    ClientStatus.CANCELLED: frozenset(),
}

PLOT_TRANSITIONS: dict[PlotStatus, frozenset[PlotStatus]] = {
    PlotStatus.AVAILABLE: frozenset({PlotStatus.SOLD, PlotStatus.RESERVED}),
    PlotStatus.RESERVED: frozenset({PlotStatus.SOLD, PlotStatus.AVAILABLE}),
    PlotStatus.SOLD: frozenset({PlotStatus.AVAILABLE}),
}

REFUND_TRANSITIONS: dict[RefundStatus, frozenset[RefundStatus]] = {
    RefundStatus.PENDING: frozenset(
        {RefundStatus.PENDING, RefundStatus.PARTIAL, RefundStatus.COMPLETED, RefundStatus.NONE}
    ),
    RefundStatus.NONE: frozenset(
        {RefundStatus.NONE, RefundStatus.PENDING, RefundStatus.PARTIAL, RefundStatus.COMPLETED}
    ),
    RefundStatus.PARTIAL: frozenset({RefundStatus.PARTIAL, RefundStatus.COMPLETED}),
    RefundStatus.COMPLETED: frozenset({RefundStatus.COMPLETED}),
}

# Money has left the company in these states
REFUNDED_STATUSES = frozenset({RefundStatus.PARTIAL, RefundStatus.COMPLETED})
NOT_REFUNDED_STATUSES = frozenset({RefundStatus.PENDING, RefundStatus.NONE})

# Plots that carry a sale and can therefore be cancelled
OCCUPIED_PLOT_STATUSES = frozenset({PlotStatus.SOLD, PlotStatus.RESERVED})


def can_transition_sale(current: ClientStatus, target: ClientStatus) -> bool:
    return target in SALE_TRANSITIONS[current]


def can_transition_plot(current: PlotStatus, target: PlotStatus) -> bool:
    return target in PLOT_TRANSITIONS[current]


def can_transition_refund(current: RefundStatus, target: RefundStatus) -> bool:
    return target in REFUND_TRANSITIONS[current]


def ensure_sale_transition(client_id: int, current: ClientStatus, target: ClientStatus) -> None:
    """Raise if a sale may not move from ``current`` to ``target``."""
    if current == ClientStatus.CANCELLED:
        raise SaleAlreadyCancelledError(client_id)
    if not can_transition_sale(current, target):
        raise IllegalTransitionError("sale", current.value, target.value)


def ensure_plot_transition(current: PlotStatus, target: PlotStatus) -> None:
    if not can_transition_plot(current, target):
        raise IllegalTransitionError("plot", current.value, target.value)


def ensure_refund_transition(current: RefundStatus, target: RefundStatus) -> None:
    if not can_transition_refund(current, target):
        raise IllegalTransitionError("refund", current.value, target.value)
