"""Project and inventory endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from landbook.api.errors import http_error
from landbook.auth.context import RequestContext
from landbook.auth.dependencies import require_admin, require_tenant_user
from landbook.db import get_db
from landbook.schemas import (
    BulkPlotCreate,
    InventoryStatsResponse,
    PlotCountsResponse,
    PlotCreate,
    PlotResponse,
    ProjectCreate,
    ProjectResponse,
)
from landbook.services import inventory
from landbook.services.errors import LandbookError

router = APIRouter(prefix="/projects", tags=["Projects"])


def _plot_input(data: PlotCreate) -> inventory.PlotInput:
    return inventory.PlotInput(
        plot_number=data.plot_number,
        price=data.price,
        size=data.size,
        notes=data.notes,
    )


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    """Create a land project."""
    try:
        project = await inventory.create_project(
            db,
            ctx,
            name=data.name,
            location=data.location,
            capacity=data.capacity,
            buying_price=data.buying_price,
            description=data.description,
        )
    except LandbookError as e:
        raise http_error(e) from e
    await db.refresh(project)
    return ProjectResponse.model_validate(project)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
):
    projects = await inventory.list_projects(db, ctx)
    return [ProjectResponse.model_validate(p) for p in projects]


@router.get("/stats", response_model=InventoryStatsResponse)
async def get_inventory_stats(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
):
    """Plot counts per project and across the tenant."""
    stats = await inventory.inventory_stats(db, ctx)
    return InventoryStatsResponse.model_validate(stats)


@router.get("/{project_id}/stats", response_model=PlotCountsResponse)
async def get_project_stats(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_tenant_user),
):
    try:
        counts = await inventory.project_stats(db, ctx, project_id)
    except LandbookError as e:
        raise http_error(e) from e
    return PlotCountsResponse.model_validate(counts)


@router.post(
    "/{project_id}/plots",
    response_model=PlotResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_plot(
    project_id: int,
    data: PlotCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    try:
        plot = await inventory.add_plot(db, ctx, project_id, _plot_input(data))
    except LandbookError as e:
        raise http_error(e) from e
    return PlotResponse.model_validate(plot)


@router.post(
    "/{project_id}/plots/bulk",
    response_model=List[PlotResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_bulk_plots(
    project_id: int,
    data: BulkPlotCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    """Add several plots; the project's plot count and capacity are updated."""
    try:
        plots = await inventory.add_plots(
            db, ctx, project_id, [_plot_input(p) for p in data.plots]
        )
    except LandbookError as e:
        raise http_error(e) from e
    return [PlotResponse.model_validate(p) for p in plots]
