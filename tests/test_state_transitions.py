"""
Tests for sale, plot and refund transition tables.
"""

import pytest

from landbook.models import ClientStatus, PlotStatus, RefundStatus
from landbook.services.errors import (
    ConflictError,
    IllegalTransitionError,
    SaleAlreadyCancelledError,
)
from landbook.services.states import (
    PLOT_TRANSITIONS,
    REFUND_TRANSITIONS,
    SALE_TRANSITIONS,
    can_transition_refund,
    ensure_plot_transition,
    ensure_refund_transition,
    ensure_sale_transition,
)


# ── Tables are exhaustive ────────────────────────────────


class TestTables:
    def test_every_sale_status_listed(self):
        assert set(SALE_TRANSITIONS) == set(ClientStatus)

    def test_every_plot_status_listed(self):
        assert set(PLOT_TRANSITIONS) == set(PlotStatus)

    def test_every_refund_status_listed(self):
        assert set(REFUND_TRANSITIONS) == set(RefundStatus)

    def test_cancelled_sale_is_terminal(self):
        assert SALE_TRANSITIONS[ClientStatus.CANCELLED] == frozenset()


# ── Sale ─────────────────────────────────────────────────


class TestSaleTransitions:
    def test_ongoing_to_cancelled(self):
        ensure_sale_transition(1, ClientStatus.ONGOING, ClientStatus.CANCELLED)

    def test_completed_to_cancelled(self):
        ensure_sale_transition(1, ClientStatus.COMPLETED, ClientStatus.CANCELLED)

    def test_cancelling_twice_raises(self):
        with pytest.raises(SaleAlreadyCancelledError) as exc:
            ensure_sale_transition(7, ClientStatus.CANCELLED, ClientStatus.CANCELLED)
        assert exc.value.client_id == 7
        assert isinstance(exc.value, ConflictError)

    def test_cancelled_cannot_reopen(self):
        with pytest.raises(SaleAlreadyCancelledError):
            ensure_sale_transition(7, ClientStatus.CANCELLED, ClientStatus.ONGOING)


# ── Plot ─────────────────────────────────────────────────


class TestPlotTransitions:
    def test_sold_to_available(self):
        ensure_plot_transition(PlotStatus.SOLD, PlotStatus.AVAILABLE)

    def test_available_to_available_rejected(self):
        with pytest.raises(IllegalTransitionError) as exc:
            ensure_plot_transition(PlotStatus.AVAILABLE, PlotStatus.AVAILABLE)
        assert exc.value.machine == "plot"

    def test_sold_to_reserved_rejected(self):
        with pytest.raises(IllegalTransitionError):
            ensure_plot_transition(PlotStatus.SOLD, PlotStatus.RESERVED)


# ── Refund ───────────────────────────────────────────────


class TestRefundTransitions:
    @pytest.mark.parametrize(
        "current, target",
        [
            (RefundStatus.PENDING, RefundStatus.COMPLETED),
            (RefundStatus.PENDING, RefundStatus.PARTIAL),
            (RefundStatus.PENDING, RefundStatus.NONE),
            (RefundStatus.NONE, RefundStatus.COMPLETED),
            (RefundStatus.PARTIAL, RefundStatus.COMPLETED),
            (RefundStatus.COMPLETED, RefundStatus.COMPLETED),
        ],
    )
    def test_forward_moves_allowed(self, current, target):
        assert can_transition_refund(current, target)
        ensure_refund_transition(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (RefundStatus.COMPLETED, RefundStatus.PENDING),
            (RefundStatus.COMPLETED, RefundStatus.PARTIAL),
            (RefundStatus.COMPLETED, RefundStatus.NONE),
            (RefundStatus.PARTIAL, RefundStatus.PENDING),
            (RefundStatus.PARTIAL, RefundStatus.NONE),
        ],
    )
    def test_backward_moves_rejected(self, current, target):
        with pytest.raises(IllegalTransitionError) as exc:
            ensure_refund_transition(current, target)
        assert exc.value.current == current.value
        assert exc.value.target == target.value
