"""Tenant-scoped row lookups shared by the services."""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from landbook.auth.context import RequestContext
from landbook.models import CancelledSale, Client, Plot, Project
from landbook.services.errors import (
    CancelledSaleNotFoundError,
    ClientNotFoundError,
    PlotNotFoundError,
    ProjectNotFoundError,
)


async def get_plot(
    db: AsyncSession,
    ctx: RequestContext,
    plot_id: int,
    for_update: bool = False,
) -> Plot:
    query = (
        select(Plot)
        .options(selectinload(Plot.project))
        .where(Plot.id == plot_id, Plot.tenant_id == ctx.tenant_id)
    )
    if for_update:
        query = query.with_for_update()
    plot = (await db.execute(query)).scalar_one_or_none()
    if not plot:
        raise PlotNotFoundError(plot_id)
    return plot


async def lock_plots(
    db: AsyncSession,
    ctx: RequestContext,
    plot_ids: Sequence[int],
) -> dict[int, Plot]:
    """Lock several plots in id order so concurrent transfers cannot deadlock."""
    result = await db.execute(
        select(Plot)
        .options(selectinload(Plot.project))
        .where(Plot.id.in_(plot_ids), Plot.tenant_id == ctx.tenant_id)
        .order_by(Plot.id)
        .with_for_update()
    )
    plots = {plot.id: plot for plot in result.scalars().all()}
    for plot_id in plot_ids:
        if plot_id not in plots:
            raise PlotNotFoundError(plot_id)
    return plots


async def get_client(
    db: AsyncSession,
    ctx: RequestContext,
    client_id: int,
    for_update: bool = False,
) -> Client:
    query = select(Client).where(Client.id == client_id, Client.tenant_id == ctx.tenant_id)
    if for_update:
        query = query.with_for_update()
    client = (await db.execute(query)).scalar_one_or_none()
    if not client:
        raise ClientNotFoundError(client_id)
    return client


async def get_cancelled_sale(
    db: AsyncSession,
    ctx: RequestContext,
    cancelled_sale_id: int,
    for_update: bool = False,
) -> CancelledSale:
    query = select(CancelledSale).where(
        CancelledSale.id == cancelled_sale_id,
        CancelledSale.tenant_id == ctx.tenant_id,
    )
    if for_update:
        query = query.with_for_update()
    cancelled = (await db.execute(query)).scalar_one_or_none()
    if not cancelled:
        raise CancelledSaleNotFoundError(cancelled_sale_id)
    return cancelled


async def get_project(db: AsyncSession, ctx: RequestContext, project_id: int) -> Project:
    project = (
        await db.execute(
            select(Project).where(Project.id == project_id, Project.tenant_id == ctx.tenant_id)
        )
    ).scalar_one_or_none()
    if not project:
        raise ProjectNotFoundError(project_id)
    return project
