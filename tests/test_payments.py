"""
Tests for client registration and installment payments.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from landbook.models import (
    ActivityAction,
    ActivityLog,
    ClientStatus,
    NotificationOutbox,
    NotificationType,
    PlotStatus,
    RefundStatus,
)
from landbook.services import payments, reconciliation
from landbook.services.errors import (
    ClientNotFoundError,
    InvalidAmountError,
    PlotNotAvailableError,
    SaleAlreadyCancelledError,
)

D = Decimal


# ── Registration ─────────────────────────────────────────


class TestRegisterClient:
    @pytest.mark.asyncio
    async def test_uses_plot_price(self, db_session, ctx, plots):
        client = await payments.register_client(
            db_session, ctx, plots["P-002"].id, name="John Otieno", phone="0700000000"
        )

        assert client.total_price == D("350000")
        assert client.balance == D("350000")
        assert client.status == ClientStatus.ONGOING
        assert client.plot_number == "P-002"
        assert client.project_name == "Kitengela Gardens"
        assert plots["P-002"].status == PlotStatus.SOLD
        assert plots["P-002"].client_id == client.id

    @pytest.mark.asyncio
    async def test_initial_payment_recorded(self, db_session, ctx, plots):
        client = await payments.register_client(
            db_session,
            ctx,
            plots["P-002"].id,
            name="John Otieno",
            discount=D("50000"),
            initial_payment=D("100000"),
        )

        assert client.total_paid == D("100000")
        assert client.balance == D("200000")
        history = await payments.list_payments(db_session, ctx, client.id)
        assert len(history) == 1
        assert history[0].notes == "Initial payment at registration"
        assert history[0].previous_balance == D("300000")
        assert history[0].new_balance == D("200000")

    @pytest.mark.asyncio
    async def test_sold_plot_rejected(self, db_session, ctx, plots, make_sale):
        await make_sale("P-002", D("0"))

        with pytest.raises(PlotNotAvailableError):
            await payments.register_client(db_session, ctx, plots["P-002"].id, name="Late Buyer")

    @pytest.mark.asyncio
    async def test_discount_above_price_rejected(self, db_session, ctx, plots):
        with pytest.raises(InvalidAmountError):
            await payments.register_client(
                db_session, ctx, plots["P-002"].id, name="X", discount=D("400000")
            )

    @pytest.mark.asyncio
    async def test_activity_logged(self, db_session, ctx, plots):
        client = await payments.register_client(db_session, ctx, plots["P-003"].id, name="Y")

        logs = (
            await db_session.execute(
                select(ActivityLog).where(ActivityLog.action == ActivityAction.CLIENT_CREATED)
            )
        ).scalars().all()
        assert [log.entity_id for log in logs] == [client.id]


# ── Payments ─────────────────────────────────────────────


class TestRecordPayment:
    @pytest.mark.asyncio
    async def test_balance_and_percent_updated(self, db_session, ctx, plots, make_sale):
        client = await make_sale("P-004", D("200000"))

        payment = await payments.record_payment(
            db_session, ctx, client.id, D("200000"), "Bank Transfer"
        )

        assert payment.previous_balance == D("600000")
        assert payment.new_balance == D("400000")
        assert payment.receipt_number
        assert client.total_paid == D("400000")
        assert client.balance == D("400000")
        assert client.percent_paid == D("50.00")
        assert client.status == ClientStatus.ONGOING

    @pytest.mark.asyncio
    async def test_final_payment_completes_sale(self, db_session, ctx, plots, make_sale):
        client = await make_sale("P-002", D("300000"))

        await payments.record_payment(db_session, ctx, client.id, D("50000"), "Cash")

        assert client.balance == D("0")
        assert client.status == ClientStatus.COMPLETED
        assert client.completion_date is not None

    @pytest.mark.asyncio
    async def test_overpayment_floors_balance(self, db_session, ctx, plots, make_sale):
        client = await make_sale("P-002", D("300000"))

        await payments.record_payment(db_session, ctx, client.id, D("80000"), "Cash")

        assert client.total_paid == D("380000")
        assert client.balance == D("0")

    @pytest.mark.parametrize("amount", ["0", "-100"])
    @pytest.mark.asyncio
    async def test_non_positive_amount_rejected(self, db_session, ctx, plots, make_sale, amount):
        client = await make_sale("P-002", D("0"))

        with pytest.raises(InvalidAmountError):
            await payments.record_payment(db_session, ctx, client.id, D(amount), "Cash")

    @pytest.mark.asyncio
    async def test_cancelled_sale_rejected(self, db_session, ctx, plots, make_sale):
        client = await make_sale("P-001", D("100000"))
        await reconciliation.cancel_sale(
            db_session,
            ctx,
            plots["P-001"].id,
            refund_amount=D("0"),
            cancellation_fee=D("0"),
            refund_status=RefundStatus.NONE,
        )

        with pytest.raises(SaleAlreadyCancelledError):
            await payments.record_payment(db_session, ctx, client.id, D("1000"), "Cash")

    @pytest.mark.asyncio
    async def test_unknown_client(self, db_session, ctx, plots):
        with pytest.raises(ClientNotFoundError):
            await payments.record_payment(db_session, ctx, 31337, D("1000"), "Cash")

    @pytest.mark.asyncio
    async def test_receipt_notification_needs_email(self, db_session, ctx, plots, make_sale):
        with_email = await make_sale("P-002", D("0"), email="jane@example.com")
        without_email = await make_sale("P-003", D("0"))

        await payments.record_payment(db_session, ctx, with_email.id, D("1000"), "M-Pesa")
        await payments.record_payment(db_session, ctx, without_email.id, D("1000"), "M-Pesa")

        messages = (await db_session.execute(select(NotificationOutbox))).scalars().all()
        assert len(messages) == 1
        assert messages[0].type == NotificationType.PAYMENT_ADDED
        assert messages[0].recipient == "jane@example.com"
        assert messages[0].payload["amount"] == "1000.00"


# ── Listing ──────────────────────────────────────────────


class TestListClients:
    @pytest.mark.asyncio
    async def test_filter_by_status_and_search(self, db_session, ctx, plots, make_sale):
        await make_sale("P-002", D("350000"))
        await make_sale("P-003", D("1000"))

        completed = await payments.list_clients(db_session, ctx, status=ClientStatus.COMPLETED)
        assert [c.plot_number for c in completed] == ["P-002"]

        found = await payments.list_clients(db_session, ctx, search="wanjiku")
        assert len(found) == 2
        assert await payments.list_clients(db_session, ctx, search="nobody") == []


# ── Payment reminders ────────────────────────────────────


class TestPaymentReminders:
    TODAY = date(2024, 6, 15)

    async def _sale(self, db_session, ctx, plots, plot_number, paid, email, due_in_days):
        return await payments.register_client(
            db_session,
            ctx,
            plots[plot_number].id,
            name=f"Buyer {plot_number}",
            phone="0712345678",
            email=email,
            initial_payment=paid,
            next_payment_date=self.TODAY + timedelta(days=due_in_days),
        )

    async def _reminders(self, db_session):
        result = await db_session.execute(
            select(NotificationOutbox).where(
                NotificationOutbox.type == NotificationType.PAYMENT_REMINDER
            )
        )
        return result.scalars().all()

    @pytest.mark.asyncio
    async def test_only_overdue_sales_with_email(self, db_session, ctx, plots):
        overdue = await self._sale(db_session, ctx, plots, "P-001", D("100000"), "jane@example.com", -5)
        await self._sale(db_session, ctx, plots, "P-002", D("100000"), "john@example.com", 5)
        await self._sale(db_session, ctx, plots, "P-003", D("100000"), None, -5)
        await self._sale(db_session, ctx, plots, "P-004", D("800000"), "paid@example.com", -5)

        queued = await payments.queue_payment_reminders(db_session, today=self.TODAY)

        reminders = await self._reminders(db_session)
        assert queued == 1
        assert len(reminders) == 1
        assert reminders[0].recipient == "jane@example.com"
        assert reminders[0].tenant_id == ctx.tenant_id
        assert reminders[0].payload["clientId"] == overdue.id
        assert D(reminders[0].payload["balance"]) == D("500000")
        assert reminders[0].payload["dueDate"] == "2024-06-10"
        assert reminders[0].payload["companyName"] == "Acme Land"

    @pytest.mark.asyncio
    async def test_cancelled_sale_not_reminded(self, db_session, ctx, plots):
        await self._sale(db_session, ctx, plots, "P-001", D("100000"), "jane@example.com", -5)
        await reconciliation.cancel_sale(
            db_session,
            ctx,
            plots["P-001"].id,
            refund_amount=D("0"),
            cancellation_fee=D("0"),
            refund_status=RefundStatus.NONE,
        )

        assert await payments.queue_payment_reminders(db_session, today=self.TODAY) == 0

    @pytest.mark.asyncio
    async def test_inactive_tenant_skipped(self, db_session, ctx, plots, tenant):
        await self._sale(db_session, ctx, plots, "P-001", D("100000"), "jane@example.com", -5)
        tenant.is_active = False
        await db_session.flush()

        assert await payments.queue_payment_reminders(db_session, today=self.TODAY) == 0
        assert await self._reminders(db_session) == []
