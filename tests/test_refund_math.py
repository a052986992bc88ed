"""
Tests for refund, retention and transfer arithmetic.

Covers:
- Net refund floored at zero, retained amount
- Balance and percent-paid helpers
- Outcome classification
- Refund expense amount (full amount vs delta)
- Transfer split (overpayment vs remaining balance)
"""

from decimal import Decimal

import pytest

from landbook.models import ClientStatus, OutcomeType, RefundStatus
from landbook.services.refunds import (
    calculate_balance,
    calculate_net_refund,
    calculate_percent_paid,
    calculate_retained,
    determine_outcome,
    refund_expense_amount,
    split_transfer,
)

D = Decimal


# ── Net refund and retained ──────────────────────────────


class TestNetRefund:
    @pytest.mark.parametrize(
        "refund, fee, expected",
        [
            ("100000", "0", "100000"),
            ("100000", "20000", "80000"),
            ("20000", "20000", "0"),
            ("10000", "50000", "0"),
            ("0", "0", "0"),
        ],
    )
    def test_refund_minus_fee_floored(self, refund, fee, expected):
        assert calculate_net_refund(D(refund), D(fee)) == D(expected)

    def test_fee_larger_than_refund_is_not_a_debt(self):
        assert calculate_net_refund(D("1"), D("1000000")) >= 0

    def test_rounds_to_cents(self):
        assert calculate_net_refund(D("100.005"), D("0")) == D("100.01")

    def test_retained_includes_fee(self):
        paid = D("200000")
        net = calculate_net_refund(D("150000"), D("20000"))
        assert calculate_retained(paid, net) == D("70000")

    def test_retained_non_negative_when_paid_covers_refund(self):
        paid = D("100000")
        net = calculate_net_refund(D("100000"), D("5000"))
        assert paid >= net
        assert calculate_retained(paid, net) >= 0


# ── Balance helpers ──────────────────────────────────────


class TestBalance:
    def test_balance_after_discount(self):
        assert calculate_balance(D("500000"), D("50000"), D("100000")) == D("350000")

    def test_balance_never_negative(self):
        assert calculate_balance(D("350000"), D("0"), D("400000")) == D("0")

    def test_percent_paid(self):
        assert calculate_percent_paid(D("400000"), D("0"), D("100000")) == D("25.00")

    def test_percent_paid_capped(self):
        assert calculate_percent_paid(D("100"), D("0"), D("150")) == D("100.00")

    def test_percent_paid_free_plot(self):
        assert calculate_percent_paid(D("100"), D("100"), D("0")) == D("100.00")


# ── Outcome classification ───────────────────────────────


class TestDetermineOutcome:
    def test_completed_with_refund(self):
        assert determine_outcome(RefundStatus.COMPLETED, D("1000")) == OutcomeType.REFUNDED

    def test_partial_with_refund(self):
        assert determine_outcome(RefundStatus.PARTIAL, D("1000")) == OutcomeType.PARTIAL_REFUND

    def test_none_is_retained(self):
        assert determine_outcome(RefundStatus.NONE, D("1000")) == OutcomeType.RETAINED

    def test_refunded_status_with_zero_net_is_retained(self):
        assert determine_outcome(RefundStatus.COMPLETED, D("0")) == OutcomeType.RETAINED

    def test_pending(self):
        assert determine_outcome(RefundStatus.PENDING, D("1000")) == OutcomeType.PENDING


# ── Refund expense amount ────────────────────────────────


class TestRefundExpenseAmount:
    def test_first_move_into_completed_is_full_amount(self):
        amount = refund_expense_amount(
            RefundStatus.PENDING, RefundStatus.COMPLETED, D("100000"), D("100000")
        )
        assert amount == D("100000")

    def test_from_none_to_partial_is_full_amount(self):
        amount = refund_expense_amount(
            RefundStatus.NONE, RefundStatus.PARTIAL, D("0"), D("40000")
        )
        assert amount == D("40000")

    def test_increase_while_refunded_is_delta(self):
        amount = refund_expense_amount(
            RefundStatus.COMPLETED, RefundStatus.COMPLETED, D("100000"), D("120000")
        )
        assert amount == D("20000")

    def test_partial_to_completed_same_amount_is_nothing(self):
        amount = refund_expense_amount(
            RefundStatus.PARTIAL, RefundStatus.COMPLETED, D("50000"), D("50000")
        )
        assert amount == D("0")

    def test_staying_pending_is_nothing(self):
        amount = refund_expense_amount(
            RefundStatus.PENDING, RefundStatus.PENDING, D("0"), D("100000")
        )
        assert amount == D("0")

    def test_zero_net_refund_is_nothing(self):
        amount = refund_expense_amount(
            RefundStatus.PENDING, RefundStatus.COMPLETED, D("0"), D("0")
        )
        assert amount == D("0")


# ── Transfer split ───────────────────────────────────────


class TestSplitTransfer:
    def test_overpayment_is_refunded(self):
        split = split_transfer(D("500000"), D("350000"))
        assert split.refund_due == D("150000")
        assert split.new_balance == D("0")
        assert split.carried_over == D("350000")
        assert split.new_status == ClientStatus.COMPLETED

    def test_underpayment_leaves_balance(self):
        split = split_transfer(D("200000"), D("350000"))
        assert split.refund_due == D("0")
        assert split.new_balance == D("150000")
        assert split.carried_over == D("200000")
        assert split.new_status == ClientStatus.ONGOING

    def test_exact_payment(self):
        split = split_transfer(D("350000"), D("350000"))
        assert split.refund_due == D("0")
        assert split.new_balance == D("0")
        assert split.new_status == ClientStatus.COMPLETED

    def test_nothing_paid(self):
        split = split_transfer(D("0"), D("350000"))
        assert split.carried_over == D("0")
        assert split.new_balance == D("350000")
