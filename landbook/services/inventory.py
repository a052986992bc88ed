"""
Projects, plots and inventory statistics.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.auth.context import RequestContext
from landbook.models import ActivityAction, Plot, PlotStatus, Project
from landbook.services.errors import ConflictError, InvalidAmountError
from landbook.services.lookups import get_plot, get_project
from landbook.services.refunds import quantize
from landbook.services.states import ensure_plot_transition
from landbook.utils.audit import log_action

logger = logging.getLogger(__name__)


@dataclass
class PlotCounts:
    total: int = 0
    available: int = 0
    sold: int = 0
    reserved: int = 0


@dataclass
class ProjectStats:
    project_id: int
    name: str
    location: str
    capacity: int
    stats: PlotCounts


@dataclass
class InventoryStats:
    total_projects: int = 0
    total_plots: int = 0
    total_capacity: int = 0
    available_plots: int = 0
    sold_plots: int = 0
    reserved_plots: int = 0
    fully_sold_projects: int = 0
    projects: list[ProjectStats] = field(default_factory=list)


@dataclass
class PlotInput:
    plot_number: str
    price: Decimal
    size: str = ""
    notes: Optional[str] = None


def _counts(statuses: Sequence[PlotStatus]) -> PlotCounts:
    counter = Counter(statuses)
    return PlotCounts(
        total=len(statuses),
        available=counter[PlotStatus.AVAILABLE],
        sold=counter[PlotStatus.SOLD],
        reserved=counter[PlotStatus.RESERVED],
    )


async def create_project(
    db: AsyncSession,
    ctx: RequestContext,
    name: str,
    location: str = "",
    capacity: int = 0,
    buying_price: Decimal = Decimal("0"),
    description: Optional[str] = None,
) -> Project:
    if capacity < 0:
        raise InvalidAmountError("capacity", Decimal(capacity))
    if buying_price < 0:
        raise InvalidAmountError("buying_price", buying_price)

    project = Project(
        tenant_id=ctx.tenant_id,
        name=name,
        location=location,
        capacity=capacity,
        total_plots=0,
        buying_price=quantize(buying_price),
        description=description,
    )
    db.add(project)
    await db.flush()

    await log_action(
        db,
        ctx,
        ActivityAction.PROJECT_CREATED,
        entity_type="project",
        entity_id=project.id,
        details={"name": name, "capacity": capacity},
    )
    logger.info(f"Created project {project.id} ({name}) for tenant {ctx.tenant_id}")
    return project


async def list_projects(db: AsyncSession, ctx: RequestContext) -> Sequence[Project]:
    result = await db.execute(
        select(Project).where(Project.tenant_id == ctx.tenant_id).order_by(Project.name)
    )
    return result.scalars().all()


async def _sync_project_counts(db: AsyncSession, project: Project) -> None:
    """Re-count plots and raise capacity when the count exceeds it."""
    count = await db.scalar(
        select(func.count()).select_from(Plot).where(Plot.project_id == project.id)
    )
    project.total_plots = count or 0
    if project.total_plots > project.capacity:
        project.capacity = project.total_plots


async def add_plots(
    db: AsyncSession,
    ctx: RequestContext,
    project_id: int,
    plots: Sequence[PlotInput],
) -> list[Plot]:
    """
    Add one or more plots to a project.

    Raises:
        ProjectNotFoundError, InvalidAmountError,
        ConflictError: a plot number already exists in the project
    """
    project = await get_project(db, ctx, project_id)
    for item in plots:
        if item.price is None or item.price < 0:
            raise InvalidAmountError("price", item.price)

    created = [
        Plot(
            tenant_id=ctx.tenant_id,
            project_id=project.id,
            plot_number=item.plot_number,
            size=item.size,
            price=quantize(item.price),
            status=PlotStatus.AVAILABLE,
            notes=item.notes,
        )
        for item in plots
    ]
    db.add_all(created)
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError(f"Duplicate plot number in project {project_id}") from e

    await _sync_project_counts(db, project)
    await log_action(
        db,
        ctx,
        ActivityAction.PLOTS_ADDED,
        entity_type="project",
        entity_id=project.id,
        details={"plot_numbers": [p.plot_number for p in created]},
    )
    await db.flush()

    logger.info(f"Added {len(created)} plots to project {project.id}")
    return created


async def add_plot(
    db: AsyncSession,
    ctx: RequestContext,
    project_id: int,
    plot: PlotInput,
) -> Plot:
    created = await add_plots(db, ctx, project_id, [plot])
    return created[0]


async def list_plots(
    db: AsyncSession,
    ctx: RequestContext,
    project_id: Optional[int] = None,
    status: Optional[PlotStatus] = None,
) -> Sequence[Plot]:
    query = select(Plot).where(Plot.tenant_id == ctx.tenant_id)

    if project_id:
        query = query.where(Plot.project_id == project_id)

    if status:
        query = query.where(Plot.status == status)

    result = await db.execute(query.order_by(Plot.project_id, Plot.plot_number))
    return result.scalars().all()


async def return_plot(db: AsyncSession, ctx: RequestContext, plot_id: int) -> Plot:
    """
    Put a plot back in stock (client defaulted).

    The sale record itself is left as-is; use cancel_sale to cancel it
    with a refund decision.
    """
    plot = await get_plot(db, ctx, plot_id, for_update=True)
    previous_client_id = plot.client_id
    ensure_plot_transition(plot.status, PlotStatus.AVAILABLE)

    plot.status = PlotStatus.AVAILABLE
    plot.client_id = None
    plot.sold_at = None

    await log_action(
        db,
        ctx,
        ActivityAction.PLOT_RETURNED,
        entity_type="plot",
        entity_id=plot.id,
        details={"client_id": previous_client_id},
    )
    await db.flush()

    logger.info(f"Returned plot {plot.id} to stock (was client {previous_client_id})")
    return plot


async def project_stats(db: AsyncSession, ctx: RequestContext, project_id: int) -> PlotCounts:
    project = await get_project(db, ctx, project_id)
    result = await db.execute(select(Plot.status).where(Plot.project_id == project.id))
    return _counts(result.scalars().all())


async def inventory_stats(db: AsyncSession, ctx: RequestContext) -> InventoryStats:
    """Per-project and tenant-wide plot counts."""
    projects = await list_projects(db, ctx)
    rows = (
        await db.execute(
            select(Plot.project_id, Plot.status).where(Plot.tenant_id == ctx.tenant_id)
        )
    ).all()

    by_project: dict[int, list[PlotStatus]] = {}
    for project_id, status in rows:
        by_project.setdefault(project_id, []).append(status)

    overall = InventoryStats(
        total_projects=len(projects),
        total_plots=len(rows),
    )
    all_counts = _counts([status for _, status in rows])
    overall.available_plots = all_counts.available
    overall.sold_plots = all_counts.sold
    overall.reserved_plots = all_counts.reserved

    for project in projects:
        counts = _counts(by_project.get(project.id, []))
        capacity = max(project.capacity or 0, counts.total)
        overall.total_capacity += project.capacity or 0
        if capacity > 0 and counts.available == 0 and counts.total >= capacity:
            overall.fully_sold_projects += 1
        overall.projects.append(
            ProjectStats(
                project_id=project.id,
                name=project.name,
                location=project.location,
                capacity=capacity,
                stats=counts,
            )
        )

    return overall
