"""
Tests for projects, plots and inventory statistics.
"""

from decimal import Decimal

import pytest

from landbook.models import PlotStatus, RefundStatus
from landbook.services import inventory, reconciliation
from landbook.services.errors import (
    ConflictError,
    IllegalTransitionError,
    InvalidAmountError,
    ProjectNotFoundError,
)
from landbook.services.inventory import PlotInput

D = Decimal


# ── Projects and plots ───────────────────────────────────


class TestProjects:
    @pytest.mark.asyncio
    async def test_create_and_list(self, db_session, ctx):
        await inventory.create_project(db_session, ctx, name="Ruiru Heights", capacity=10)
        await inventory.create_project(db_session, ctx, name="Athi Plains")

        projects = await inventory.list_projects(db_session, ctx)
        assert [p.name for p in projects] == ["Athi Plains", "Ruiru Heights"]

    @pytest.mark.asyncio
    async def test_negative_capacity_rejected(self, db_session, ctx):
        with pytest.raises(InvalidAmountError):
            await inventory.create_project(db_session, ctx, name="Bad", capacity=-1)

    @pytest.mark.asyncio
    async def test_plot_count_tracked(self, db_session, ctx):
        project = await inventory.create_project(db_session, ctx, name="Juja", capacity=1)

        await inventory.add_plots(
            db_session,
            ctx,
            project.id,
            [PlotInput("J-1", D("100000")), PlotInput("J-2", D("120000"))],
        )

        assert project.total_plots == 2
        assert project.capacity == 2

    @pytest.mark.asyncio
    async def test_duplicate_plot_number(self, db_session, ctx, plots):
        project_id = plots["P-001"].project_id

        with pytest.raises(ConflictError, match=f"project {project_id}"):
            await inventory.add_plot(db_session, ctx, project_id, PlotInput("P-001", D("1")))

    @pytest.mark.asyncio
    async def test_negative_price_rejected(self, db_session, ctx, plots):
        with pytest.raises(InvalidAmountError):
            await inventory.add_plot(
                db_session, ctx, plots["P-001"].project_id, PlotInput("P-009", D("-5"))
            )

    @pytest.mark.asyncio
    async def test_unknown_project(self, db_session, ctx):
        with pytest.raises(ProjectNotFoundError):
            await inventory.add_plot(db_session, ctx, 777, PlotInput("Z-1", D("1")))

    @pytest.mark.asyncio
    async def test_list_plots_by_status(self, db_session, ctx, plots, make_sale):
        await make_sale("P-001", D("0"))

        available = await inventory.list_plots(db_session, ctx, status=PlotStatus.AVAILABLE)
        assert [p.plot_number for p in available] == ["P-002", "P-003", "P-004"]


# ── Returning plots ──────────────────────────────────────


class TestReturnPlot:
    @pytest.mark.asyncio
    async def test_sold_plot_returned(self, db_session, ctx, plots, make_sale):
        await make_sale("P-001", D("0"))

        plot = await inventory.return_plot(db_session, ctx, plots["P-001"].id)

        assert plot.status == PlotStatus.AVAILABLE
        assert plot.client_id is None
        assert plot.sold_at is None

    @pytest.mark.asyncio
    async def test_available_plot_rejected(self, db_session, ctx, plots):
        with pytest.raises(IllegalTransitionError):
            await inventory.return_plot(db_session, ctx, plots["P-002"].id)


# ── Statistics ───────────────────────────────────────────


class TestStats:
    @pytest.mark.asyncio
    async def test_project_stats(self, db_session, ctx, plots, make_sale):
        await make_sale("P-001", D("0"))
        await make_sale("P-002", D("0"))

        counts = await inventory.project_stats(db_session, ctx, plots["P-001"].project_id)

        assert counts.total == 4
        assert counts.sold == 2
        assert counts.available == 2
        assert counts.reserved == 0

    @pytest.mark.asyncio
    async def test_inventory_stats_fully_sold(self, db_session, ctx, plots, make_sale):
        for number in ("P-001", "P-002", "P-003", "P-004"):
            await make_sale(number, D("0"))
        await inventory.create_project(db_session, ctx, name="Empty", capacity=5)

        stats = await inventory.inventory_stats(db_session, ctx)

        assert stats.total_projects == 2
        assert stats.total_plots == 4
        assert stats.total_capacity == 9
        assert stats.sold_plots == 4
        assert stats.available_plots == 0
        assert stats.fully_sold_projects == 1

    @pytest.mark.asyncio
    async def test_cancellation_frees_inventory(self, db_session, ctx, plots, make_sale):
        for number in ("P-001", "P-002", "P-003", "P-004"):
            await make_sale(number, D("0"))

        await reconciliation.cancel_sale(
            db_session,
            ctx,
            plots["P-004"].id,
            refund_amount=D("0"),
            cancellation_fee=D("0"),
            refund_status=RefundStatus.NONE,
        )
        stats = await inventory.inventory_stats(db_session, ctx)

        assert stats.available_plots == 1
        assert stats.fully_sold_projects == 0
